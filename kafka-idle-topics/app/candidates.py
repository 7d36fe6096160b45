# ------------------------------
#   ایمپورت‌ها
# ------------------------------
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List
from topic_ops import TopicPartitionMap
from utils import has_any_prefix

# ------------------------------
#   قوانین allow/disallow/prefix
# ------------------------------
@dataclass(frozen=True)
class ListRules:
    allow: FrozenSet[str] = frozenset()
    disallow: FrozenSet[str] = frozenset()
    prefixes: FrozenSet[str] = frozenset()

    def admits(self, topic: str) -> bool:
        """disallow همیشه برنده است؛ allow خالی یعنی بدون محدودیت"""
        if topic in self.disallow:
            return False
        if self.allow and topic not in self.allow:
            return False
        return not has_any_prefix(topic, self.prefixes)

def drop_topics(topics: TopicPartitionMap, active: Iterable[str]) -> TopicPartitionMap:
    """نگاشت جدید بدون تاپیک‌های فعال (ورودی دست نمی‌خورد)"""
    gone = set(active)
    return {t: list(p) for t, p in topics.items() if t not in gone}

def scope_topics(topics: TopicPartitionMap, rules: ListRules) -> TopicPartitionMap:
    """قبل از فیلترها: تاپیک‌های خارج از قوانین اصلاً ارزیابی نمی‌شوند"""
    return {t: list(p) for t, p in topics.items() if rules.admits(t)}

def reduce_candidates(topics: TopicPartitionMap, rules: ListRules) -> List[str]:
    """مرحلهٔ REDUCE: بدون I/O و قطعی؛ خروجی مرتب و بدون تکرار"""
    return sorted(t for t in set(topics) if rules.admits(t))
