import sys
import click
from confluent_kafka import KafkaException
from config import (build_security, build_settings, Settings, SECURITY_MODES, OUTPUT_FORMATS,
                    LOOKUP_POLICIES, DEFAULT_ASSESSMENT_MS, DEFAULT_FILENAME)
from errors import IdleTopicsError
from kafka_clients import KafkaClients, check_connection
from pipeline import run_pipeline
from report import write_report
from utils import log, env_int, load_string_set

VERSION = "1.2"
PROGNAME = "kafka-idle-topics"

def run(settings: Settings, clients=None) -> str:
    """اجرای کامل و نوشتن گزارش؛ فقط در صورت موفقیت همهٔ مراحل فایل ساخته می‌شود"""
    clients = clients or KafkaClients(settings)
    log.info("== %s %s ==", PROGNAME, VERSION)
    log.info("BOOTSTRAP: %s | SECURITY=%s | PRODUCTION=%r | SKIP=%s",
             settings.bootstrap_servers, settings.security.mode, settings.production, sorted(settings.skip))

    with clients.admin() as ac:
        check_connection(ac, timeout_total=settings.timeout_s)

    report = run_pipeline(settings, clients)
    path = write_report(report, settings.filename, settings.output_format)
    log.info("✅ Done! You can delete %d topics and %d partitions! A list of found idle topics is available at: %s",
             len(report.candidates), report.partition_count, path)
    return path

@click.command(name=PROGNAME, context_settings={"help_option_names": ["-h", "--help"]})
# هر فلگ نسخهٔ قدیمی خودش را هم می‌پذیرد (مثل -kafkaSecurity)
@click.option("--bootstrap-servers", "-bootstrap-servers", "bootstrap_servers", envvar="KAFKA_BOOTSTRAP",
              help="Address to the target Kafka Cluster. Accepts multiple endpoints separated by a comma.")
@click.option("--username", "-username", "username", envvar="KAFKA_USERNAME",
              help="Username in the PLAIN module (principal for GSSAPI).")
@click.option("--password", "-password", "password", envvar="KAFKA_PASSWORD", help="Password in the PLAIN module.")
@click.option("--kafka-security", "-kafkaSecurity", "--kafkaSecurity", "kafka_security", default="none",
              show_default=True, type=click.Choice(SECURITY_MODES, case_sensitive=False),
              help="Type of connection to attempt.")
@click.option("--gssapi-keytab", "-gssapiKeytab", "--gssapiKeytab", "gssapi_keytab", envvar="KAFKA_GSSAPI_KEYTAB",
              help="Keytab filepath in the GSSAPI module.")
@click.option("--gssapi-service-name", "-gssapiServicename", "--gssapiServicename", "gssapi_service_name",
              envvar="KAFKA_GSSAPI_SERVICENAME", help="Kafka service in the GSSAPI module.")
@click.option("--filename", "-filename", "filename", default=DEFAULT_FILENAME, show_default=True,
              help="Custom filename for the output.")
@click.option("--output-format", "output_format", default="text", show_default=True, type=click.Choice(OUTPUT_FORMATS))
@click.option("--skip", "-skip", "skip", default="",
              help="Filtering to skip: production, consumption, storage (comma-delimited).")
@click.option("--production-assessment-time-ms", "-productionAssessmentTimeMs", "--productionAssessmentTimeMs",
              "assessment_ms", default=DEFAULT_ASSESSMENT_MS, show_default=True, type=int,
              help="Timeframe to assess active production.")
@click.option("--idle-minutes", "-idleMinutes", "--idleMinutes", "idle_minutes",
              default=lambda: env_int("KAFKA_IDLE_MINUTES", 0), type=int,
              help="Amount of minutes a topic should be idle to report it. Falls back to KAFKA_IDLE_MINUTES.  "
                   "[default: 0]")
@click.option("--hide-internal-topics", "-hideInternalTopics", "--hideInternalTopics", "hide_internal_topics",
              is_flag=True, help="Hide internal topics from assessment.")
@click.option("--hide-topics-prefixes", "-hideTopicsPrefixes", "--hideTopicsPrefixes", "hide_topics_prefixes",
              default="", help="Disqualify provided prefixes from assessment. Comma-delimited list or path to a file.")
@click.option("--allow-list", "-allowList", "--allowList", "allow_list", default="",
              help="Topics to evaluate. Comma-delimited list or path to a file.")
@click.option("--disallow-list", "-disallowList", "--disallowList", "disallow_list", default="",
              help="Topics to exclude. Comma-delimited list or path to a file.")
@click.option("--timeout", "timeout_s", default=lambda: env_int("TIMEOUT_SEC", 30), type=int,
              help="Timeout in seconds for admin and offset requests.  [default: 30]")
@click.option("--on-lookup-error", "on_lookup_error", default="fail", show_default=True,
              type=click.Choice(LOOKUP_POLICIES),
              help="fail: abort the run; exclude: treat the topic as active and continue.")
@click.option("--lookup-retries", "lookup_retries", default=2, show_default=True, type=int,
              help="Retries per partition lookup.")
@click.version_option(VERSION, "--version", "-version", prog_name=PROGNAME, message="%(prog)s: %(version)s")
def cli(bootstrap_servers, username, password, kafka_security, gssapi_keytab, gssapi_service_name, filename,
        output_format, skip, assessment_ms, idle_minutes, hide_internal_topics, hide_topics_prefixes, allow_list,
        disallow_list, timeout_s, on_lookup_error, lookup_retries):
    """Report idle Kafka topics that are candidates for deletion (nothing is deleted)."""
    try:
        settings = build_settings(
            bootstrap_servers,
            build_security(kafka_security, username, password, gssapi_keytab, gssapi_service_name),
            assessment_ms=assessment_ms,
            idle_minutes=idle_minutes,
            skip=skip,
            hide_internal_topics=hide_internal_topics,
            hide_topic_prefixes=load_string_set(hide_topics_prefixes),
            allow_list=load_string_set(allow_list),
            disallow_list=load_string_set(disallow_list),
            filename=filename,
            output_format=output_format,
            timeout_s=timeout_s,
            on_lookup_error=on_lookup_error,
            lookup_retries=lookup_retries,
        )
        run(settings)
    except KeyboardInterrupt:
        log.warning("Interrupted by user")
        sys.exit(130)
    except (IdleTopicsError, KafkaException, OSError) as e:
        log.error("❌ %s", e)
        sys.exit(1)

def main():
    cli()

if __name__ == "__main__":
    main()
