# ------------------------------
#   ایمپورت‌ها و مقدمات
# ------------------------------
import os, time, logging
from typing import Callable, FrozenSet, Iterable, Optional, TypeVar
from confluent_kafka import KafkaException

T = TypeVar("T")

# ------------------------------
#   لاگ و سطح آن
# ------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()                        # سطح لاگ از ENV
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(levelname)s | %(message)s"
)
log = logging.getLogger("kafka-idle-topics")                              # لاگر اصلی

# ------------------------------
#   ابزارهای عمومی ENV
# ------------------------------
def env_bool(name: str, default: bool = False) -> bool:
    """خواندن مقدار بولین از ENV با پذیرش 1/true/yes/on"""
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in ("1", "true", "yes", "y", "on")

def env_int(name: str, default: int) -> int:
    """خواندن عدد صحیح از ENV؛ مقدار نامعتبر → پیش‌فرض (با هشدار)"""
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return int(v.strip())
    except ValueError:
        log.warning("⚠ مقدار %s=%r عدد نیست؛ پیش‌فرض %d استفاده شد.", name, v, default)
        return default

# ------------------------------
#   منبع مجموعهٔ رشته‌ها (لیست با کاما یا مسیر فایل)
# ------------------------------
def load_string_set(value: Optional[str]) -> FrozenSet[str]:
    """
    ورودی allow/disallow/prefix را به مجموعه تبدیل می‌کند:
    - اگر مسیر یک فایل موجود باشد → هر خط یک مقدار
    - در غیر این صورت → لیست جداشده با کاما
    خطوط خالی و فاصله‌های اضافه حذف می‌شوند.
    """
    if value is None:
        return frozenset()
    value = value.strip()
    if not value:
        return frozenset()
    if os.path.isfile(value):
        with open(value, "r", encoding="utf-8") as f:
            items = [line.strip() for line in f]
        log.debug("مجموعه از فایل %s خوانده شد (n=%d)", value, len(items))
    else:
        items = [p.strip() for p in value.split(",")]
    return frozenset(i for i in items if i)

def has_any_prefix(name: str, prefixes: Iterable[str]) -> bool:
    """آیا نام تاپیک با یکی از پیشوندها شروع می‌شود؟"""
    return any(name.startswith(p) for p in prefixes)

# ------------------------------
#   تکرار فراخوانی با backoff ساده
# ------------------------------
def call_with_retries(fn: Callable[[], T], retries: int, what: str, backoff_s: float = 0.5) -> T:
    """
    اجرای fn و در صورت KafkaException تا retries بار دیگر تلاش؛
    آخرین خطا بدون تغییر بالا فرستاده می‌شود.
    """
    attempt = 0
    while True:
        try:
            return fn()
        except KafkaException as e:
            if attempt >= retries:
                raise
            attempt += 1
            log.debug("تلاش دوباره %s (%d/%d): %s", what, attempt, retries, e)
            time.sleep(min(backoff_s * attempt, 5))
