"""
tests/test_main.py - command line entry point
"""

from dataclasses import replace
from unittest.mock import patch

import pytest
from click.testing import CliRunner

import main
from config import IdleSinceThreshold, SamplingWindow
from conftest import FakePartition
from errors import ClusterError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def captured():
    with patch.object(main, "run") as run:
        yield run


def settings_of(run):
    return run.call_args[0][0]


def test_version(runner):
    result = runner.invoke(main.cli, ["--version"])

    assert result.exit_code == 0
    assert "kafka-idle-topics: 1.2" in result.output


def test_flags_become_settings(runner, captured, tmp_path):
    allow = tmp_path / "allow.txt"
    allow.write_text("orders\npayments\n", encoding="utf-8")

    result = runner.invoke(main.cli, [
        "--bootstrap-servers", "b1:9092",
        "--kafka-security", "PLAIN_TLS",
        "--username", "svc", "--password", "secret",
        "--skip", "storage",
        "--idle-minutes", "120",
        "--hide-internal-topics",
        "--hide-topics-prefixes", "tmp_,_confluent",
        "--allow-list", str(allow),
        "--disallow-list", "payments",
    ])

    assert result.exit_code == 0, result.output
    s = settings_of(captured)
    assert s.bootstrap_servers == "b1:9092"
    assert s.security.mode == "plain_tls"
    assert s.production == IdleSinceThreshold(120)
    assert s.skip == frozenset({"storage"})
    assert s.hide_internal_topics is True
    assert s.hide_topic_prefixes == frozenset({"tmp_", "_confluent"})
    assert s.allow_list == frozenset({"orders", "payments"})
    assert s.disallow_list == frozenset({"payments"})


def test_environment_fallback(runner, captured):
    env = {
        "KAFKA_BOOTSTRAP": "env-broker:9092",
        "KAFKA_USERNAME": "svc",
        "KAFKA_PASSWORD": "secret",
        "KAFKA_IDLE_MINUTES": "0",
    }

    result = runner.invoke(main.cli, ["--kafka-security", "plain", "--production-assessment-time-ms", "5000"], env=env)

    assert result.exit_code == 0, result.output
    s = settings_of(captured)
    assert s.bootstrap_servers == "env-broker:9092"
    assert s.security.username == "svc"
    assert s.production == SamplingWindow(5000)


def test_original_camel_case_flags_accepted(runner, captured):
    result = runner.invoke(main.cli, [
        "-bootstrap-servers", "b1:9092",
        "-kafkaSecurity", "gssapi",
        "-gssapiKeytab", "/etc/kafka.keytab",
        "-gssapiServicename", "kafka",
        "-productionAssessmentTimeMs", "1000",
        "-hideInternalTopics",
        "-hideTopicsPrefixes", "tmp_",
        "-allowList", "a,b",
        "--disallowList", "b",
        "-skip", "consumption",
    ])

    assert result.exit_code == 0, result.output
    s = settings_of(captured)
    assert s.security.mode == "gssapi"
    assert s.security.service_name == "kafka"
    assert s.production == SamplingWindow(1000)
    assert s.hide_internal_topics is True
    assert s.hide_topic_prefixes == frozenset({"tmp_"})
    assert s.allow_list == frozenset({"a", "b"})
    assert s.disallow_list == frozenset({"b"})
    assert s.skip == frozenset({"consumption"})


def test_idle_minutes_camel_case_flag(runner, captured):
    result = runner.invoke(main.cli, ["--bootstrap-servers", "b:9092", "-idleMinutes", "45"])

    assert result.exit_code == 0, result.output
    assert settings_of(captured).production == IdleSinceThreshold(45)


def test_unparsable_idle_minutes_env_falls_back_to_sampling(runner, captured):
    result = runner.invoke(main.cli, ["--bootstrap-servers", "b:9092"], env={"KAFKA_IDLE_MINUTES": "soon"})

    assert result.exit_code == 0, result.output
    assert settings_of(captured).production == SamplingWindow(30000)


def test_idle_minutes_env_used_when_flag_absent(runner, captured):
    result = runner.invoke(main.cli, ["--bootstrap-servers", "b:9092"], env={"KAFKA_IDLE_MINUTES": "10"})

    assert result.exit_code == 0, result.output
    assert settings_of(captured).production == IdleSinceThreshold(10)


def test_missing_credentials_fail_before_connecting(runner, captured):
    result = runner.invoke(main.cli, ["--bootstrap-servers", "b:9092", "--kafka-security", "plain"],
                           env={"KAFKA_USERNAME": "", "KAFKA_PASSWORD": ""})

    assert result.exit_code == 1
    captured.assert_not_called()


def test_cluster_error_exits_non_zero(runner, captured):
    captured.side_effect = ClusterError("Kafka unreachable after 30s")

    result = runner.invoke(main.cli, ["--bootstrap-servers", "b:9092"])

    assert result.exit_code == 1


def test_run_writes_report_only_after_pipeline(cluster, tmp_path, settings):
    cluster.add("orders", FakePartition())
    cluster.add("busy", FakePartition(low=0, high=3))
    target = tmp_path / "idleTopics.txt"
    settings = replace(settings, skip=frozenset({"production"}), filename=str(target))

    path = main.run(settings, clients=cluster)

    assert path == str(target)
    assert target.read_text(encoding="utf-8") == "orders\n"


def test_run_failure_writes_nothing(cluster, tmp_path, settings):
    cluster.add("orders", FakePartition(low=0, high=3))
    cluster.failing_partitions.add(("orders", 0))
    target = tmp_path / "idleTopics.txt"
    settings = replace(settings, skip=frozenset({"production"}), filename=str(target))

    with pytest.raises(ClusterError):
        main.run(settings, clients=cluster)

    assert not target.exists()
