# ------------------------------
#   ایمپورت‌ها
# ------------------------------
from dataclasses import dataclass, field
from typing import List, Set
from config import Settings, SamplingWindow, IdleSinceThreshold, PRODUCTION, CONSUMPTION, STORAGE
from candidates import ListRules, drop_topics, scope_topics, reduce_candidates
from consumption import find_consumed_topics
from lookups import PartitionLookup
from production import find_recently_produced, find_produced_since
from storage import find_topics_with_data
from topic_ops import TopicPartitionMap, fetch_topic_partitions, partition_count
from utils import log

# ------------------------------
#   نتیجهٔ یک اجرا
# ------------------------------
@dataclass
class IdleReport:
    candidates: List[str]
    partition_count: int
    stages_run: List[str] = field(default_factory=list)

def rules_from(settings: Settings) -> ListRules:
    return ListRules(allow=settings.allow_list, disallow=settings.disallow_list,
                     prefixes=settings.hide_topic_prefixes)

# ------------------------------
#   مراحل فیلتر (هر کدام فقط تاپیک‌های فعال را برمی‌گرداند)
# ------------------------------
def _lookup(settings: Settings, consumer) -> PartitionLookup:
    return PartitionLookup(consumer, timeout=settings.timeout_s, retries=settings.lookup_retries,
                           on_error=settings.on_lookup_error)

def production_stage(settings: Settings, clients, topics: TopicPartitionMap) -> Set[str]:
    check = settings.production
    with clients.consumer("production") as c:
        if isinstance(check, IdleSinceThreshold):
            return find_produced_since(_lookup(settings, c), topics, check.minutes)
        if isinstance(check, SamplingWindow):
            return find_recently_produced(c, topics, check.duration_ms, settings.on_lookup_error)
    raise TypeError(f"unknown production check {check!r}")

def consumption_stage(settings: Settings, clients, topics: TopicPartitionMap) -> Set[str]:
    with clients.admin() as ac:
        return find_consumed_topics(ac, topics, settings.timeout_s)

def storage_stage(settings: Settings, clients, topics: TopicPartitionMap) -> Set[str]:
    with clients.consumer("storage") as c:
        return find_topics_with_data(_lookup(settings, c), topics)

STAGE_RUNNERS = (
    (PRODUCTION, production_stage),
    (CONSUMPTION, consumption_stage),
    (STORAGE, storage_stage),
)

# ------------------------------
#   اجرای کامل
# ------------------------------
def run_pipeline(settings: Settings, clients) -> IdleReport:
    """
    INVENTORY → {PRODUCTION?} → {CONSUMPTION?} → {STORAGE?} → REDUCE
    هر مرحله فقط حذف می‌کند؛ خطاها به فراخواننده می‌رسند و خروجی جزئی ساخته نمی‌شود.
    """
    rules = rules_from(settings)
    with clients.admin() as ac:
        topics = fetch_topic_partitions(ac, settings.hide_internal_topics, settings.hide_topic_prefixes,
                                        settings.timeout_s)
    topics = scope_topics(topics, rules)

    ran: List[str] = []
    for name, runner in STAGE_RUNNERS:
        if not settings.runs(name):
            log.info("⏭ مرحلهٔ %s رد شد (skip)", name)
            continue
        if not topics:
            log.info("هیچ تاپیکی برای مرحلهٔ %s باقی نمانده.", name)
            ran.append(name)
            continue
        active = runner(settings, clients, topics)
        before = len(topics)
        topics = drop_topics(topics, active)
        log.info("✔ %s: %d → %d تاپیک (%d فعال)", name, before, len(topics), before - len(topics))
        ran.append(name)

    candidates = reduce_candidates(topics, rules)
    kept = {t: topics[t] for t in candidates}
    return IdleReport(candidates=candidates, partition_count=partition_count(kept), stages_run=ran)
