# ------------------------------
#   ایمپورت‌ها
# ------------------------------
from typing import Dict, List, Set
from confluent_kafka import KafkaException, ConsumerGroupTopicPartitions
from confluent_kafka.admin import AdminClient
from errors import ClusterError
from topic_ops import TopicPartitionMap
from utils import log

# ------------------------------
#   consumer groupها و offsetهای commit‌شده
# ------------------------------
def list_group_ids(ac: AdminClient, timeout: int = 30) -> List[str]:
    """لیست همهٔ consumer groupهای کلاستر"""
    try:
        result = ac.list_consumer_groups(request_timeout=timeout).result()
    except KafkaException as e:
        raise ClusterError(f"list_consumer_groups failed: {e}") from e
    if result.errors:
        raise ClusterError(f"list_consumer_groups returned errors: {result.errors}")
    return sorted(g.group_id for g in result.valid)

def committed_topics_by_group(ac: AdminClient, group_ids: List[str], timeout: int = 30) -> Dict[str, Set[str]]:
    """تاپیک → groupهایی که روی آن offset commit کرده‌اند (هر offset، حتی قدیمی)"""
    buckets: Dict[str, Set[str]] = {}
    for gid in group_ids:
        # هر درخواست فقط یک group می‌پذیرد
        futures = ac.list_consumer_group_offsets([ConsumerGroupTopicPartitions(gid)], request_timeout=timeout)
        try:
            res = futures[gid].result()
        except KafkaException as e:
            raise ClusterError(f"list_consumer_group_offsets({gid}) failed: {e}") from e
        for tp in res.topic_partitions or []:
            if tp.offset >= 0:
                buckets.setdefault(tp.topic, set()).add(gid)
    return buckets

def find_consumed_topics(ac: AdminClient, topics: TopicPartitionMap, timeout: int = 30) -> Set[str]:
    """
    یک بار groupها و offsetها را می‌خوانیم و بر اساس تاپیک دسته‌بندی می‌کنیم؛
    تاپیکی که حداقل یک group دارد فعال است.
    """
    group_ids = list_group_ids(ac, timeout)
    log.info("🔎 Consumption: %d consumer group پیدا شد", len(group_ids))
    buckets = committed_topics_by_group(ac, group_ids, timeout)
    active = {t for t in topics if t in buckets}
    for t in sorted(active):
        log.debug("%s توسط %s مصرف می‌شود", t, sorted(buckets[t]))
    return active
