# ------------------------------
#   خطاهای سرویس
# ------------------------------
class IdleTopicsError(Exception):
    """پایهٔ همهٔ خطاهایی که اجرای کامل را متوقف می‌کنند"""

class ConfigError(IdleTopicsError):
    """پیکربندی ناقص یا نامعتبر (قبل از هر تماس شبکه‌ای)"""

class ClusterError(IdleTopicsError):
    """عدم دسترسی به کلاستر، خطای احراز هویت یا metadata"""

class OffsetLookupError(ClusterError):
    """خواندن offset یک پارتیشن پس از تلاش‌های مجدد هم ناموفق ماند"""

    def __init__(self, topic: str, partition: int, cause: Exception):
        super().__init__(f"offset lookup failed for {topic}[{partition}]: {cause}")
        self.topic = topic
        self.partition = partition
        self.cause = cause
