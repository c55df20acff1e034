import pytest

from demo_producer.errors import ClientConstructionError, QueueFullError
from demo_producer.settings import ProducerSettings


class RecordingProducer:
    """Stands in for KafkaTopicProducer and remembers every call."""

    def __init__(self, settings, fail_at=None, drop_at=(), error=None, close_error=None):
        self.settings = settings
        self.calls = 0
        self.sent = []
        self.closed = False
        self.fail_at = fail_at
        self.drop_at = set(drop_at)
        self.error = error or RuntimeError("broker went away")
        self.close_error = close_error

    def send(self, value):
        index = self.calls
        self.calls += 1
        if index == self.fail_at:
            raise self.error
        if index in self.drop_at:
            raise QueueFullError("queue full")
        self.sent.append(value)

    def close(self):
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def settings():
    return ProducerSettings(topic="orders", broker_list="localhost:9092")


@pytest.fixture
def recorder():
    """Factory building RecordingProducers; keeps them on `.made` for asserts."""
    made = []
    options = {}

    def factory(settings):
        producer = RecordingProducer(settings, **options)
        made.append(producer)
        return producer

    factory.made = made
    factory.options = options
    return factory


@pytest.fixture
def broken_factory():
    calls = []

    def factory(settings):
        calls.append(settings)
        raise ClientConstructionError("no brokers available")

    factory.calls = calls
    return factory
