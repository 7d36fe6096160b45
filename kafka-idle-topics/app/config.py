# ------------------------------
#   ایمپورت‌ها
# ------------------------------
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Union
from errors import ConfigError

# ------------------------------
#   ثابت‌ها
# ------------------------------
PRODUCTION = "production"
CONSUMPTION = "consumption"
STORAGE = "storage"
STAGES = (PRODUCTION, CONSUMPTION, STORAGE)                               # ترتیب اجرای فیلترها

SECURITY_MODES = ("none", "plain", "plain_tls", "tls", "gssapi", "gssapi_tls")
OUTPUT_FORMATS = ("text", "json")
LOOKUP_POLICIES = ("fail", "exclude")                                     # رفتار هنگام شکست lookup پارتیشن

DEFAULT_ASSESSMENT_MS = 30000
DEFAULT_FILENAME = "idleTopics.txt"

# ------------------------------
#   حالت‌های بررسی تولید (یکی در هر اجرا)
# ------------------------------
@dataclass(frozen=True)
class SamplingWindow:
    """مشاهدهٔ زندهٔ تاپیک‌ها برای duration_ms میلی‌ثانیه"""
    duration_ms: int = DEFAULT_ASSESSMENT_MS

@dataclass(frozen=True)
class IdleSinceThreshold:
    """مقایسهٔ offset زمانِ «اکنون منهای minutes» با high watermark"""
    minutes: int

ProductionCheck = Union[SamplingWindow, IdleSinceThreshold]

def production_check(assessment_ms: int, idle_minutes: int) -> ProductionCheck:
    """انتخاب حالت: idle_minutes == 0 → نمونه‌برداری، بزرگ‌تر از صفر → آستانهٔ زمانی"""
    if idle_minutes < 0:
        raise ConfigError("idleMinutes must be >= 0")
    if idle_minutes > 0:
        return IdleSinceThreshold(minutes=idle_minutes)
    if assessment_ms <= 0:
        raise ConfigError("productionAssessmentTimeMs must be > 0")
    return SamplingWindow(duration_ms=assessment_ms)

# ------------------------------
#   تنظیمات اتصال
# ------------------------------
@dataclass(frozen=True)
class Security:
    mode: str = "none"
    username: Optional[str] = None
    password: Optional[str] = None
    keytab: Optional[str] = None
    service_name: Optional[str] = None

    def __repr__(self) -> str:
        # رمز عبور در لاگ‌ها چاپ نشود
        return f"Security(mode={self.mode!r}, username={self.username!r})"

@dataclass(frozen=True)
class Settings:
    """تصویر تغییرناپذیر از پارامترهای یک اجرا"""
    bootstrap_servers: str
    security: Security = field(default_factory=Security)
    production: ProductionCheck = field(default_factory=SamplingWindow)
    hide_internal_topics: bool = False
    hide_topic_prefixes: FrozenSet[str] = frozenset()
    allow_list: FrozenSet[str] = frozenset()
    disallow_list: FrozenSet[str] = frozenset()
    skip: FrozenSet[str] = frozenset()
    filename: str = DEFAULT_FILENAME
    output_format: str = "text"
    timeout_s: int = 30
    on_lookup_error: str = "fail"
    lookup_retries: int = 2

    def runs(self, stage: str) -> bool:
        return stage not in self.skip

# ------------------------------
#   اعتبارسنجی
# ------------------------------
def parse_skip(value: Optional[str]) -> FrozenSet[str]:
    """پارس لیست مراحل قابل‌صرف‌نظر (production,consumption,storage)"""
    if not value:
        return frozenset()
    steps = frozenset(s.strip().lower() for s in value.split(",") if s.strip())
    unknown = sorted(steps - set(STAGES))
    if unknown:
        raise ConfigError(f"unknown skip step(s) {unknown}; options are: {', '.join(STAGES)}")
    return steps

def build_security(mode: str, username: Optional[str] = None, password: Optional[str] = None,
                   keytab: Optional[str] = None, service_name: Optional[str] = None) -> Security:
    """بررسی اینکه اطلاعات لازم برای حالت امنیتی انتخاب‌شده موجود باشد"""
    mode = (mode or "none").strip().lower()
    if mode not in SECURITY_MODES:
        raise ConfigError(f"unknown kafkaSecurity {mode!r}; options are: {', '.join(SECURITY_MODES)}")
    if mode in ("plain", "plain_tls"):
        if not username:
            raise ConfigError("Username is required for PLAIN mechanism")
        if not password:
            raise ConfigError("Password is required for PLAIN mechanism")
    if mode in ("gssapi", "gssapi_tls"):
        if not keytab:
            raise ConfigError("Keytab is required for GSSAPI mechanism")
        if not service_name:
            raise ConfigError("Servicename is required for GSSAPI mechanism")
    return Security(mode=mode, username=username or None, password=password or None,
                    keytab=keytab or None, service_name=service_name or None)

def build_settings(bootstrap_servers: Optional[str], security: Security, assessment_ms: int = DEFAULT_ASSESSMENT_MS,
                   idle_minutes: int = 0, skip: Optional[str] = None, **options) -> Settings:
    """ساخت Settings نهایی؛ هر خطای پیکربندی پیش از اتصال به کافکا ConfigError می‌دهد"""
    if not bootstrap_servers or not bootstrap_servers.strip():
        raise ConfigError("bootstrap-servers is required (flag or KAFKA_BOOTSTRAP)")
    fmt = options.get("output_format", "text")
    if fmt not in OUTPUT_FORMATS:
        raise ConfigError(f"unknown output format {fmt!r}")
    policy = options.get("on_lookup_error", "fail")
    if policy not in LOOKUP_POLICIES:
        raise ConfigError(f"unknown lookup error policy {policy!r}")
    if options.get("lookup_retries", 0) < 0 or options.get("timeout_s", 1) <= 0:
        raise ConfigError("timeout must be > 0 and lookup retries >= 0")
    return Settings(
        bootstrap_servers=bootstrap_servers.strip(),
        security=security,
        production=production_check(assessment_ms, idle_minutes),
        skip=parse_skip(skip),
        **options,
    )
