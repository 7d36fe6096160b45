# ------------------------------
#   ایمپورت‌ها
# ------------------------------
from typing import Callable, Optional, Tuple, TypeVar
from confluent_kafka import KafkaException, TopicPartition, Consumer
from errors import OffsetLookupError
from utils import log, call_with_retries

T = TypeVar("T")

# ------------------------------
#   lookup یک پارتیشن با سیاست خطا
# ------------------------------
class PartitionLookup:
    """
    اجرای lookupهای هر پارتیشن با تلاش مجدد؛
    on_error=fail → OffsetLookupError، on_error=exclude → None (تاپیک فعال فرض می‌شود)
    """

    def __init__(self, consumer: Consumer, timeout: int = 10, retries: int = 2, on_error: str = "fail"):
        self.consumer = consumer
        self.timeout = timeout
        self.retries = retries
        self.on_error = on_error

    def _guard(self, topic: str, partition: int, what: str, fn: Callable[[], T]) -> Optional[T]:
        try:
            return call_with_retries(fn, self.retries, f"{what} {topic}[{partition}]")
        except KafkaException as e:
            if self.on_error == "exclude":
                log.warning("⚠ %s برای %s[%d] ناموفق؛ تاپیک کنار گذاشته شد: %s", what, topic, partition, e)
                return None
            raise OffsetLookupError(topic, partition, e) from e

    def watermarks(self, topic: str, partition: int) -> Optional[Tuple[int, int]]:
        """(low, high) بدون کش"""
        def fetch():
            wm = self.consumer.get_watermark_offsets(TopicPartition(topic, partition),
                                                     timeout=self.timeout, cached=False)
            if wm is None:
                raise KafkaException(f"watermark request timed out after {self.timeout}s")
            return wm
        return self._guard(topic, partition, "watermarks", fetch)

    def offset_for_time(self, topic: str, partition: int, ts_ms: int) -> Optional[int]:
        """offset اولین پیام با timestamp >= ts_ms؛ ‎-1 یعنی پیامی بعد از آن نیست"""
        def fetch():
            res = self.consumer.offsets_for_times([TopicPartition(topic, partition, ts_ms)], timeout=self.timeout)
            if res[0].error is not None:
                raise KafkaException(res[0].error)
            return res[0].offset
        return self._guard(topic, partition, "offsets_for_times", fetch)
