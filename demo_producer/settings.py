"""
Maps the legacy producer option names onto a typed, immutable settings bundle.

Option names keep the dotted 0.8-producer spelling (``request.required.acks``,
``queue.enqueue.timeout.ms``, ...) so the command line reads the same as the
property files people already have lying around.
"""
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping

from .errors import InvalidOptionValue, MissingRequiredOption

TOPIC = "topic"
BROKER_LIST = "metadata.broker.list"
NUM_MESSAGES = "num-of-messages-to-send"

REQUIRED_OPTIONS = (TOPIC, BROKER_LIST, NUM_MESSAGES)

ACK_MODES = (-1, 0, 1)
PRODUCER_TYPES = ("sync", "async")
COMPRESSION_CODECS = ("none", "gzip", "snappy")

DEFAULTS: Dict[str, Any] = {
    "metadata.broker.list": "localhost:9092",
    "request.required.acks": 1,
    "producer.type": "async",
    "request.timeout.ms": 10000,
    "compression.codec": "none",
    "message.send.max.retries": 3,
    "retry.backoff.ms": 100,
    "queue.buffering.max.ms": 5000,
    "queue.buffering.max.messages": 10000,
    "queue.enqueue.timeout.ms": -1,
    "batch.num.messages": 200,
    "client.id": "",
    "send.buffer.bytes": 100 * 1024,
}


@dataclass(frozen=True)
class ProducerSettings:
    topic: str
    broker_list: str
    required_acks: int = DEFAULTS["request.required.acks"]
    producer_type: str = DEFAULTS["producer.type"]
    request_timeout_ms: int = DEFAULTS["request.timeout.ms"]
    compression_codec: str = DEFAULTS["compression.codec"]
    send_max_retries: int = DEFAULTS["message.send.max.retries"]
    retry_backoff_ms: int = DEFAULTS["retry.backoff.ms"]
    queue_buffering_max_ms: int = DEFAULTS["queue.buffering.max.ms"]
    queue_buffering_max_messages: int = DEFAULTS["queue.buffering.max.messages"]
    queue_enqueue_timeout_ms: int = DEFAULTS["queue.enqueue.timeout.ms"]
    batch_num_messages: int = DEFAULTS["batch.num.messages"]
    client_id: str = DEFAULTS["client.id"]
    send_buffer_bytes: int = DEFAULTS["send.buffer.bytes"]

    @property
    def is_async(self) -> bool:
        return self.producer_type == "async"

    def as_properties(self) -> Dict[str, str]:
        """Render back to dotted property names with string values."""
        props = {TOPIC: self.topic}
        for field in fields(self):
            name = _FIELD_TO_OPTION.get(field.name)
            if name is not None:
                props[name] = str(getattr(self, field.name))
        return props


# dataclass field -> dotted option name
_FIELD_TO_OPTION = {
    "broker_list": "metadata.broker.list",
    "required_acks": "request.required.acks",
    "producer_type": "producer.type",
    "request_timeout_ms": "request.timeout.ms",
    "compression_codec": "compression.codec",
    "send_max_retries": "message.send.max.retries",
    "retry_backoff_ms": "retry.backoff.ms",
    "queue_buffering_max_ms": "queue.buffering.max.ms",
    "queue_buffering_max_messages": "queue.buffering.max.messages",
    "queue_enqueue_timeout_ms": "queue.enqueue.timeout.ms",
    "batch_num_messages": "batch.num.messages",
    "client_id": "client.id",
    "send_buffer_bytes": "send.buffer.bytes",
}


def _supplied(options: Mapping[str, Any], name: str) -> bool:
    return options.get(name) is not None


def _value(options, name):
    if _supplied(options, name):
        return options[name]
    return DEFAULTS[name]


def _as_int(name, value, minimum=None) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidOptionValue(name, value, "expected an integer") from None
    if minimum is not None and number < minimum:
        raise InvalidOptionValue(name, value, f"must be >= {minimum}")
    return number


def _as_choice(name, value, choices):
    if value not in choices:
        allowed = ", ".join(str(c) for c in choices)
        raise InvalidOptionValue(name, value, f"must be one of {allowed}")
    return value


def required_options(options: Mapping[str, Any]) -> int:
    """
    Check the required options are present and return the message count.
    Raises MissingRequiredOption naming every absent option.
    """
    missing = [name for name in REQUIRED_OPTIONS if not _supplied(options, name)]
    if missing:
        raise MissingRequiredOption(missing)
    return _as_int(NUM_MESSAGES, options[NUM_MESSAGES], minimum=0)


def resolve_settings(options: Mapping[str, Any]) -> ProducerSettings:
    """
    Build the settings bundle from supplied option values.

    Missing optional values fall back to DEFAULTS. Nothing here touches the
    network or any process-wide state.
    """
    required_options(options)

    topic = str(options[TOPIC]).strip()
    if not topic:
        raise InvalidOptionValue(TOPIC, options[TOPIC], "must not be empty")
    broker_list = str(options[BROKER_LIST]).strip()
    if not broker_list:
        raise InvalidOptionValue(BROKER_LIST, options[BROKER_LIST], "must not be empty")

    acks = _as_choice(
        "request.required.acks",
        _as_int("request.required.acks", _value(options, "request.required.acks")),
        ACK_MODES,
    )

    return ProducerSettings(
        topic=topic,
        broker_list=broker_list,
        required_acks=acks,
        producer_type=_as_choice("producer.type", _value(options, "producer.type"), PRODUCER_TYPES),
        request_timeout_ms=_as_int("request.timeout.ms", _value(options, "request.timeout.ms"), minimum=0),
        compression_codec=_as_choice(
            "compression.codec", _value(options, "compression.codec"), COMPRESSION_CODECS
        ),
        send_max_retries=_as_int(
            "message.send.max.retries", _value(options, "message.send.max.retries"), minimum=0
        ),
        retry_backoff_ms=_as_int("retry.backoff.ms", _value(options, "retry.backoff.ms"), minimum=0),
        queue_buffering_max_ms=_as_int(
            "queue.buffering.max.ms", _value(options, "queue.buffering.max.ms"), minimum=0
        ),
        queue_buffering_max_messages=_as_int(
            "queue.buffering.max.messages", _value(options, "queue.buffering.max.messages"), minimum=1
        ),
        # -1 means block forever
        queue_enqueue_timeout_ms=_as_int(
            "queue.enqueue.timeout.ms", _value(options, "queue.enqueue.timeout.ms"), minimum=-1
        ),
        batch_num_messages=_as_int("batch.num.messages", _value(options, "batch.num.messages"), minimum=1),
        client_id=str(_value(options, "client.id")),
        send_buffer_bytes=_as_int("send.buffer.bytes", _value(options, "send.buffer.bytes"), minimum=1),
    )
