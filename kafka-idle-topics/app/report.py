# ------------------------------
#   ایمپورت‌ها
# ------------------------------
import json, os, tempfile
from datetime import datetime, timezone
from pipeline import IdleReport
from utils import log

# ------------------------------
#   نوشتن گزارش تاپیک‌های قابل‌حذف
# ------------------------------
def render(report: IdleReport, fmt: str = "text") -> str:
    if fmt == "json":
        return json.dumps({
            "topics": report.candidates,
            "topic_count": len(report.candidates),
            "partition_count": report.partition_count,
            "stages": report.stages_run,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }, indent=2) + "\n"
    return "".join(f"{t}\n" for t in report.candidates)

def write_report(report: IdleReport, filename: str, fmt: str = "text") -> str:
    """
    نوشتن اتمیک: ابتدا فایل موقت در همان پوشه، سپس rename؛
    در صورت خطا فایل نیمه‌کاره باقی نمی‌ماند. مسیر مطلق برگردانده می‌شود.
    """
    path = os.path.abspath(filename)
    folder = os.path.dirname(path)
    os.makedirs(folder, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".idle-topics-", dir=folder)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(render(report, fmt))
        os.chmod(tmp, 0o644)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
    log.debug("✔ گزارش ذخیره شد: %s", path)
    return path
