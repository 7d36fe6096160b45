# ------------------------------
#   ایمپورت‌ها
# ------------------------------
from typing import Set
from lookups import PartitionLookup
from topic_ops import TopicPartitionMap, partition_count
from utils import log

# ------------------------------
#   تاپیک‌های دارای داده
# ------------------------------
def find_topics_with_data(lookup: PartitionLookup, topics: TopicPartitionMap) -> Set[str]:
    """اگر برای هر پارتیشنی high > low باشد، تاپیک هنوز پیام قابل‌خواندن دارد"""
    log.info("🔎 Storage: بررسی watermark برای %d پارتیشن", partition_count(topics))
    active: Set[str] = set()
    for topic, parts in topics.items():
        for p in parts:
            wm = lookup.watermarks(topic, p)
            if wm is None or wm[1] > wm[0]:
                active.add(topic)
                break
    return active
