"""
Thin producer handle bound to one topic.

kafka-python's KafkaProducer has no sync/async switch and no message-count
queue limit, so both are emulated here on top of the record futures it
returns from send().
"""
import logging
import threading
from collections import deque

from kafka import KafkaProducer
from kafka.errors import KafkaError, KafkaTimeoutError

from .errors import ClientConstructionError, QueueFullError
from .settings import ProducerSettings

logger = logging.getLogger(__name__)

# batch.num.messages counts records, KafkaProducer.batch_size counts bytes
RECORD_SIZE_HINT = 128


def producer_config(settings: ProducerSettings) -> dict:
    """Translate the settings bundle into KafkaProducer keyword arguments."""
    config = {
        "bootstrap_servers": [b.strip() for b in settings.broker_list.split(",") if b.strip()],
        "acks": "all" if settings.required_acks == -1 else settings.required_acks,
        "request_timeout_ms": settings.request_timeout_ms,
        "compression_type": None if settings.compression_codec == "none" else settings.compression_codec,
        "retries": settings.send_max_retries,
        "retry_backoff_ms": settings.retry_backoff_ms,
        "linger_ms": settings.queue_buffering_max_ms if settings.is_async else 0,
        "batch_size": settings.batch_num_messages * RECORD_SIZE_HINT,
        "send_buffer_bytes": settings.send_buffer_bytes,
    }
    if settings.client_id:
        config["client_id"] = settings.client_id
    return config


def enqueue_block_ms(settings: ProducerSettings):
    """
    How long KafkaProducer.send may block on buffer memory, or None to keep
    kafka-python's own max_block_ms.
    """
    if settings.is_async and settings.queue_enqueue_timeout_ms >= 0:
        return settings.queue_enqueue_timeout_ms
    return None


class KafkaTopicProducer:
    def __init__(self, settings: ProducerSettings):
        self.settings = settings
        self.topic = settings.topic
        # callbacks run on kafka-python's sender thread
        self._lock = threading.Lock()
        self._acked = 0
        self._failed = 0
        self._pending = deque()
        try:
            self._producer = KafkaProducer(**producer_config(settings))
            # topic metadata is fetched under the default max_block_ms; later
            # sends then only block on buffer space
            self._producer.partitions_for(self.topic)
        except (KafkaError, AssertionError, ValueError, TypeError) as e:
            raise ClientConstructionError(
                f"could not create producer for brokers {settings.broker_list!r}: {e}"
            ) from e

        block_ms = enqueue_block_ms(settings)
        if block_ms is not None:
            self._producer.config["max_block_ms"] = block_ms

    @property
    def acked(self) -> int:
        with self._lock:
            return self._acked

    @property
    def failed(self) -> int:
        with self._lock:
            return self._failed

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _on_success(self, metadata):
        with self._lock:
            self._acked += 1

    def _on_error(self, exc):
        with self._lock:
            self._failed += 1
        logger.debug(f"Delivery failed: {exc}")

    def _make_room(self):
        while self._pending and self._pending[0].is_done:
            self._pending.popleft()
        if len(self._pending) < self.settings.queue_buffering_max_messages:
            return

        timeout_ms = self.settings.queue_enqueue_timeout_ms
        if timeout_ms == 0:
            raise QueueFullError(f"{len(self._pending)} messages already queued")

        oldest = self._pending.popleft()
        try:
            oldest.get(timeout=None if timeout_ms < 0 else timeout_ms / 1000.0)
        except KafkaTimeoutError:
            if not oldest.is_done:
                self._pending.appendleft(oldest)
                raise QueueFullError(f"queue still full after {timeout_ms} ms") from None
        except KafkaError:
            # already tallied by _on_error; the slot is free either way
            pass

    def _enqueue(self, value):
        try:
            return self._producer.send(self.topic, value=value)
        except KafkaTimeoutError as e:
            if enqueue_block_ms(self.settings) is None:
                raise
            raise QueueFullError(
                f"no buffer space after {self.settings.queue_enqueue_timeout_ms} ms: {e}"
            ) from e

    def send(self, value: bytes):
        """
        Hand one message to the producer.

        In sync mode this waits until the record is acknowledged or the
        client has given up retrying it; in async mode it returns once the
        record is queued.
        """
        if self.settings.is_async:
            self._make_room()

        future = self._enqueue(value)
        future.add_callback(self._on_success)
        future.add_errback(self._on_error)

        if self.settings.is_async:
            self._pending.append(future)
        else:
            # bounded by request.timeout.ms and the client's own retries
            future.get()
        return future

    def close(self):
        try:
            self._producer.flush()
        finally:
            self._producer.close()
            self._pending.clear()
