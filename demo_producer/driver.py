import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional

from .client import KafkaTopicProducer
from .errors import QueueFullError, SendError
from .settings import ProducerSettings

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    run_id: str
    requested: int
    sent: int = 0
    dropped: int = 0
    interrupted: bool = False
    acked: Optional[int] = None
    failed: Optional[int] = None

    @property
    def complete(self) -> bool:
        return not self.interrupted and self.dropped == 0 and self.sent == self.requested


def generate_run_id(rng=None) -> str:
    """Random lowercase hex token; collisions across runs are acceptable."""
    rng = rng or random
    return format(rng.getrandbits(31), "x")


def build_message(run_id: str, sequence: int) -> str:
    return f"{run_id}: {sequence}"


def run_driver(
    settings: ProducerSettings,
    count: int,
    producer_factory: Callable[[ProducerSettings], object] = KafkaTopicProducer,
    stop_event=None,
    run_id: Optional[str] = None,
) -> RunResult:
    """
    Send `count` numbered messages to settings.topic and return the tally.

    Construction errors propagate untouched. A failed send aborts the loop with
    SendError carrying the number already sent; a message dropped by the
    client's enqueue policy is counted and the loop carries on. The client is
    closed on every path.
    """
    producer = producer_factory(settings)

    result = RunResult(run_id=run_id or generate_run_id(), requested=count)
    logger.info(f"Sending {count} messages to topic '{settings.topic}' (run id {result.run_id}).")
    try:
        for i in range(count):
            if stop_event is not None and stop_event.is_set():
                logger.warning(f"Stop requested, skipping messages {i}..{count - 1}")
                result.interrupted = True
                break
            body = build_message(result.run_id, i).encode("utf-8")
            try:
                producer.send(body)
            except QueueFullError as e:
                result.dropped += 1
                logger.warning(f"Dropped message {i}: {e}")
                continue
            except Exception as e:
                raise SendError(i, result.sent, e) from e
            result.sent += 1
    except KeyboardInterrupt:
        logger.warning(f"Interrupted by user after sending {result.sent} messages")
        result.interrupted = True
    except BaseException:
        # the abort reason wins over a failing close
        try:
            producer.close()
        except Exception:
            logger.exception(f"Closing the producer failed after {result.sent} messages were sent")
        raise

    producer.close()
    result.acked = getattr(producer, "acked", None)
    result.failed = getattr(producer, "failed", None)

    logger.info(f"Sent {result.sent} messages.")
    if result.dropped:
        logger.warning(f"Dropped {result.dropped} messages (queue.enqueue.timeout.ms policy).")
    if result.failed:
        logger.warning(f"{result.failed} messages were not acknowledged by the broker.")
    return result
