# ------------------------------
#   ایمپورت‌ها
# ------------------------------
import time, uuid
from contextlib import contextmanager
from typing import Dict, Iterator, Optional
from confluent_kafka import KafkaException, Consumer
from confluent_kafka.admin import AdminClient
from config import Settings, Security
from errors import ClusterError
from utils import log

# ------------------------------
#   نگاشت حالت امنیتی به تنظیمات librdkafka
# ------------------------------
_PROTOCOLS = {
    "none":       ("PLAINTEXT", None),
    "tls":        ("SSL", None),
    "plain":      ("SASL_PLAINTEXT", "PLAIN"),
    "plain_tls":  ("SASL_SSL", "PLAIN"),
    "gssapi":     ("SASL_PLAINTEXT", "GSSAPI"),
    "gssapi_tls": ("SASL_SSL", "GSSAPI"),
}

def security_conf(sec: Security) -> Dict[str, str]:
    """تنظیمات احراز هویت/SSL بر اساس حالت انتخاب‌شده"""
    protocol, mech = _PROTOCOLS[sec.mode]
    conf = {"security.protocol": protocol}
    if mech: conf["sasl.mechanism"] = mech
    if mech == "PLAIN":
        conf["sasl.username"] = sec.username
        conf["sasl.password"] = sec.password
    if mech == "GSSAPI":
        conf["sasl.kerberos.keytab"] = sec.keytab
        conf["sasl.kerberos.service.name"] = sec.service_name
        if sec.username: conf["sasl.kerberos.principal"] = sec.username
    return conf

def base_conf(settings: Settings) -> Dict[str, str]:
    conf = {"bootstrap.servers": settings.bootstrap_servers}
    conf.update(security_conf(settings.security))
    return conf

# ------------------------------
#   ساخت کلاینت‌های کافکا
# ------------------------------
def get_admin(settings: Settings) -> AdminClient:
    """AdminClient برای metadata و consumer groupها"""
    return AdminClient(base_conf(settings))

def get_consumer(settings: Settings, group_id: str) -> Consumer:
    """Consumer فقط‌خواندنی؛ هیچ offsetی commit نمی‌شود"""
    conf = base_conf(settings)
    conf.update({
        "group.id": group_id,
        "enable.auto.commit": False,
        "auto.offset.reset": "latest",
        "enable.partition.eof": False,
    })
    return Consumer(conf)

class KafkaClients:
    """
    جلسه‌های محدود به هر مرحله:
    هر مرحله کلاینت خودش را باز می‌کند و در پایان (موفق یا ناموفق) آزاد می‌شود.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    @contextmanager
    def admin(self) -> Iterator[AdminClient]:
        # AdminClient متد close ندارد؛ با خروج از scope آزاد می‌شود
        yield get_admin(self.settings)

    @contextmanager
    def consumer(self, purpose: str) -> Iterator[Consumer]:
        group = f"kafka-idle-topics.{purpose}.{uuid.uuid4().hex[:8]}"
        c = get_consumer(self.settings, group)
        try:
            yield c
        finally:
            try:
                c.close()
            except RuntimeError:
                pass  # قبلاً بسته شده

# ------------------------------
#   بررسی دسترسی به کافکا
# ------------------------------
def check_connection(ac: AdminClient, timeout_total: int = 30) -> None:
    """چک ساده اتصال به کافکا (لیست تاپیک‌ها باید جواب بدهد)"""
    t0 = time.time()
    last_err: Optional[Exception] = None
    while time.time() - t0 < timeout_total:
        try:
            md = ac.list_topics(timeout=5)
            if md and md.brokers:
                log.info("✔ اتصال به Kafka برقرار شد. brokers=%s", sorted(md.brokers.keys()))
                return
        except KafkaException as e:
            last_err = e
        time.sleep(2)
    raise ClusterError(f"Kafka unreachable after {timeout_total}s: {last_err}")
