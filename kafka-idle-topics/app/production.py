# ------------------------------
#   ایمپورت‌ها
# ------------------------------
import time
from typing import Optional, Set
from confluent_kafka import Consumer, KafkaError, KafkaException, TopicPartition, OFFSET_END
from errors import ClusterError
from lookups import PartitionLookup
from topic_ops import TopicPartitionMap, partition_count
from utils import log

# خطاهای کل کلاستر: ادامهٔ نمونه‌برداری همه را idle نشان می‌دهد
CLUSTER_ERRORS = frozenset({
    KafkaError._ALL_BROKERS_DOWN,
    KafkaError._AUTHENTICATION,
    KafkaError.SASL_AUTHENTICATION_FAILED,
    KafkaError.CLUSTER_AUTHORIZATION_FAILED,
})
# خطاهای گذرا که فقط رد می‌شوند
TRANSIENT_ERRORS = frozenset({
    KafkaError._TRANSPORT,
    KafkaError._TIMED_OUT,
    KafkaError._PARTITION_EOF,
})

# ------------------------------
#   حالت A: نمونه‌برداری زنده
# ------------------------------
def find_recently_produced(c: Consumer, topics: TopicPartitionMap, duration_ms: int,
                           on_error: str = "fail") -> Set[str]:
    """
    همهٔ پارتیشن‌ها از انتهای لاگ assign می‌شوند و تا پایان پنجره poll می‌کنیم؛
    هر تاپیکی که حداقل یک پیام بگیرد فعال است.
    تاپیکی که کندتر از پنجره تولید می‌کند ممکن است idle دیده شود (محدودیت پذیرفته‌شده).
    تاپیکی که قابل‌خواندن نیست هرگز idle حساب نمی‌شود: on_error=fail → ClusterError،
    on_error=exclude → فعال فرض می‌شود.
    """
    assignment = [TopicPartition(t, p, OFFSET_END) for t, parts in topics.items() for p in parts]
    if not assignment:
        return set()
    active: Set[str] = set()
    try:
        c.assign(assignment)
    except KafkaException as e:
        raise ClusterError(f"assign failed: {e}") from e
    log.info("🔎 Production: نمونه‌برداری %d پارتیشن برای %dms", len(assignment), duration_ms)
    deadline = time.time() + duration_ms / 1000.0
    while len(active) < len(topics):
        remaining = deadline - time.time()
        if remaining <= 0:
            break
        msg = c.poll(min(1.0, remaining))
        if msg is None:
            continue
        err = msg.error()
        if err is not None:
            if err.fatal() or err.code() in CLUSTER_ERRORS:
                raise ClusterError(f"consumer error: {err}")
            topic = msg.topic()
            if err.code() in TRANSIENT_ERRORS or topic not in topics:
                log.debug("consumer error (sampling): %s", err)
                continue
            if on_error != "exclude":
                raise ClusterError(f"cannot sample {topic}: {err}")
            log.warning("⚠ نمونه‌برداری %s ناموفق؛ تاپیک کنار گذاشته شد: %s", topic, err)
            active.add(topic)
            continue
        if msg.topic() not in active:
            log.debug("پیام جدید روی %s", msg.topic())
            active.add(msg.topic())
    return active

# ------------------------------
#   حالت B: بی‌تحرک از N دقیقه پیش
# ------------------------------
def find_produced_since(lookup: PartitionLookup, topics: TopicPartitionMap, idle_minutes: int,
                        now_ms: Optional[int] = None) -> Set[str]:
    """
    برای هر پارتیشن offset زمانِ cutoff = now - idle_minutes با high watermark مقایسه می‌شود.
    0 <= offset < high یعنی بعد از cutoff پیام تولید شده → تاپیک فعال.
    پارتیشن خالی یا تاپیک بدون پارتیشن idle حساب می‌شود.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    cutoff = now_ms - idle_minutes * 60 * 1000
    log.info("🔎 Production: بررسی %d پارتیشن از %d دقیقه پیش (cutoff=%d)",
             partition_count(topics), idle_minutes, cutoff)
    active: Set[str] = set()
    for topic, parts in topics.items():
        for p in parts:
            wm = lookup.watermarks(topic, p)
            if wm is None:
                active.add(topic)
                break
            low, high = wm
            if high <= low:
                continue  # پارتیشن خالی
            offset = lookup.offset_for_time(topic, p, cutoff)
            if offset is None or 0 <= offset < high:
                active.add(topic)
                break
    return active
