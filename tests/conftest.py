"""
tests/conftest.py - in-memory Kafka cluster fakes

FakeCluster plays the `clients` role of the pipeline: `admin()` and
`consumer(purpose)` context managers returning fakes that answer the
confluent-kafka calls the filters make.
"""

import time
from concurrent.futures import Future
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import SimpleNamespace

import pytest
from confluent_kafka import KafkaException, TopicPartition

from config import Settings


def done(value):
    fut = Future()
    fut.set_result(value)
    return fut


def failed(exc):
    fut = Future()
    fut.set_exception(exc)
    return fut


@dataclass
class FakePartition:
    low: int = 0
    high: int = 0
    # offset returned by offsets_for_times at the idle cutoff; -1 = nothing after it
    offset_at_cutoff: int = -1


@dataclass
class FakeCluster:
    topics: dict = field(default_factory=dict)  # name -> [FakePartition]
    internal: set = field(default_factory=set)
    groups: dict = field(default_factory=dict)  # group id -> {topic: committed offset}
    producing: set = field(default_factory=set)  # topics receiving messages while sampled
    failing_partitions: set = field(default_factory=set)  # {(topic, partition)}
    opened: list = field(default_factory=list)
    closed: list = field(default_factory=list)

    def add(self, name, *partitions):
        self.topics[name] = list(partitions) or [FakePartition()]
        return self

    @contextmanager
    def admin(self):
        self.opened.append("admin")
        try:
            yield FakeAdmin(self)
        finally:
            self.closed.append("admin")

    @contextmanager
    def consumer(self, purpose):
        self.opened.append(purpose)
        c = FakeConsumer(self)
        try:
            yield c
        finally:
            c.close()
            self.closed.append(purpose)


class FakeAdmin:
    def __init__(self, cluster):
        self.cluster = cluster
        self.group_offset_requests = 0

    def list_topics(self, timeout=None):
        topics = {
            name: SimpleNamespace(partitions={i: object() for i in range(len(parts))}, error=None)
            for name, parts in self.cluster.topics.items()
        }
        return SimpleNamespace(topics=topics, brokers={1: object()})

    def describe_topics(self, collection, request_timeout=None):
        return {name: done(SimpleNamespace(is_internal=name in self.cluster.internal)) for name in self.cluster.topics}

    def list_consumer_groups(self, request_timeout=None):
        valid = [SimpleNamespace(group_id=g) for g in self.cluster.groups]
        return done(SimpleNamespace(valid=valid, errors=[]))

    def list_consumer_group_offsets(self, requests, request_timeout=None):
        assert len(requests) == 1
        gid = requests[0].group_id
        self.group_offset_requests += 1
        tps = [TopicPartition(t, 0, off) for t, off in self.cluster.groups[gid].items()]
        return {gid: done(SimpleNamespace(group_id=gid, topic_partitions=tps))}


class FakeMessage:
    def __init__(self, topic, err=None):
        self._topic = topic
        self._err = err

    def topic(self):
        return self._topic

    def error(self):
        return self._err


class FakeConsumer:
    def __init__(self, cluster):
        self.cluster = cluster
        self.assignment = []
        self.pending = []
        self.closed = False

    def _partition(self, topic, partition):
        if (topic, partition) in self.cluster.failing_partitions:
            raise KafkaException("broker not available")
        return self.cluster.topics[topic][partition]

    def get_watermark_offsets(self, tp, timeout=None, cached=False):
        p = self._partition(tp.topic, tp.partition)
        return p.low, p.high

    def offsets_for_times(self, tps, timeout=None):
        out = []
        for tp in tps:
            p = self._partition(tp.topic, tp.partition)
            out.append(TopicPartition(tp.topic, tp.partition, p.offset_at_cutoff))
        return out

    def assign(self, partitions):
        self.assignment = list(partitions)
        assigned = {tp.topic for tp in partitions}
        self.pending = [FakeMessage(t) for t in sorted(self.cluster.producing & assigned)]

    def poll(self, timeout=None):
        if self.pending:
            return self.pending.pop(0)
        time.sleep(min(timeout or 0, 0.01))
        return None

    def close(self):
        self.closed = True


@pytest.fixture
def cluster():
    return FakeCluster()


@pytest.fixture
def settings():
    return Settings(bootstrap_servers="localhost:9092", lookup_retries=0)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """retry backoff must not slow the suite down"""
    monkeypatch.setattr("utils.time.sleep", lambda s: None)
