# ------------------------------
#   ایمپورت‌ها
# ------------------------------
from typing import Dict, FrozenSet, Iterable, List
from confluent_kafka import KafkaException, TopicCollection
from confluent_kafka.admin import AdminClient
from errors import ClusterError
from utils import log, has_any_prefix

TopicPartitionMap = Dict[str, List[int]]

# ------------------------------
#   فهرست تاپیک‌ها و پارتیشن‌ها
# ------------------------------
def list_topic_partitions(ac: AdminClient, timeout: int = 10) -> TopicPartitionMap:
    """metadata کلاستر → نگاشت تاپیک به لیست مرتب پارتیشن‌ها"""
    try:
        md = ac.list_topics(timeout=timeout)
    except KafkaException as e:
        raise ClusterError(f"metadata fetch failed: {e}") from e
    out: TopicPartitionMap = {}
    for name, tmd in md.topics.items():
        if tmd.error is not None:
            # تاپیک ناخوانا با پارتیشن خالی در غیر این صورت idle دیده می‌شد
            raise ClusterError(f"metadata for topic {name} failed: {tmd.error}")
        out[name] = sorted((tmd.partitions or {}).keys())
    return out

def internal_topics(ac: AdminClient, names: Iterable[str], timeout: int = 10) -> FrozenSet[str]:
    """تاپیک‌هایی که بروکر آن‌ها را internal علامت زده (مثل __consumer_offsets)"""
    names = sorted(names)
    if not names:
        return frozenset()
    futures = ac.describe_topics(TopicCollection(names), request_timeout=timeout)
    found = set()
    try:
        for name, fut in futures.items():
            if fut.result().is_internal:
                found.add(name)
    except KafkaException as e:
        raise ClusterError(f"describe_topics failed: {e}") from e
    return frozenset(found)

def fetch_topic_partitions(ac: AdminClient, hide_internal: bool, hide_prefixes: Iterable[str],
                           timeout: int = 10) -> TopicPartitionMap:
    """
    مرحلهٔ INVENTORY:
    - همهٔ تاپیک‌های قابل‌مشاهده همراه پارتیشن‌ها
    - حذف internalها اگر hide_internal
    - حذف تاپیک‌هایی که با پیشوندهای پنهان شروع می‌شوند
    """
    topics = list_topic_partitions(ac, timeout)
    total = len(topics)
    prefixes = tuple(hide_prefixes)
    if prefixes:
        topics = {t: p for t, p in topics.items() if not has_any_prefix(t, prefixes)}
    if hide_internal:
        hidden = internal_topics(ac, topics.keys(), timeout)
        topics = {t: p for t, p in topics.items() if t not in hidden}
    log.info("📋 Inventory: %d تاپیک در کلاستر، %d تاپیک برای ارزیابی", total, len(topics))
    return topics

def partition_count(topics: TopicPartitionMap) -> int:
    return sum(len(p) for p in topics.values())
