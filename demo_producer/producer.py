#!/usr/bin/env python3
"""
Demo Kafka producer that publishes sequentially-numbered text messages to a topic.

Usage examples:
  python -m demo_producer.producer --topic orders --metadata.broker.list localhost:9092 \
      --num-of-messages-to-send 1000 --producer.type sync --request.required.acks -1

Every message body is "<run id>: <n>" where the run id is a random hex token
shared by all messages of one invocation.
"""
import argparse
import logging
import sys

from .client import KafkaTopicProducer
from .driver import run_driver
from .errors import ClientConstructionError, ConfigurationError, MissingRequiredOption, SendError
from .settings import ACK_MODES, COMPRESSION_CODECS, DEFAULTS, PRODUCER_TYPES, required_options, resolve_settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130

# (option, type, choices, help)
PRODUCER_OPTIONS = [
    ("metadata.broker.list", str, None,
     "Bootstrap brokers as host1:port1,host2:port2. Only used to fetch metadata; "
     "the list can be a subset of the cluster."),
    ("request.required.acks", int, ACK_MODES,
     "0: never wait for an ack, 1: ack once the leader has the data, "
     "-1: ack once all in-sync replicas have it."),
    ("producer.type", str, PRODUCER_TYPES, "'sync' waits for each ack, 'async' queues and batches."),
    ("request.timeout.ms", int, None,
     "How long the broker may wait to satisfy request.required.acks before answering with an error."),
    ("compression.codec", str, COMPRESSION_CODECS, "Compression codec for all produced data."),
    ("message.send.max.retries", int, None,
     "Retries for a failed send. Non-zero values can produce duplicates when an ack is lost."),
    ("retry.backoff.ms", int, None, "Wait before each retry while metadata is refreshed."),
    ("queue.buffering.max.ms", int, None, "Async mode: maximum time to buffer records before sending."),
    ("queue.buffering.max.messages", int, None,
     "Async mode: maximum unsent messages before the producer blocks or drops."),
    ("queue.enqueue.timeout.ms", int, None,
     "Async mode, full queue: -1 blocks forever, 0 drops immediately, N blocks up to N ms then drops."),
    ("batch.num.messages", int, None, "Async mode: messages to send in one batch."),
    ("client.id", str, None, "Identifier sent with every request to help trace calls."),
    ("send.buffer.bytes", int, None, "Socket write buffer size."),
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="demo-producer",
        description="Send a fixed number of numbered messages to a Kafka topic.",
    )
    parser.add_argument("--topic", dest="topic", help="The topic to which messages will be sent (required)")
    parser.add_argument(
        "--num-of-messages-to-send",
        dest="num-of-messages-to-send",
        type=int,
        help="Total number of messages to send (required)",
    )
    for name, kind, choices, text in PRODUCER_OPTIONS:
        parser.add_argument(
            "--" + name,
            dest=name,
            type=kind,
            choices=choices,
            help=f"{text} (default: {DEFAULTS[name]!r})",
        )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    return parser


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def run(argv=None, producer_factory=KafkaTopicProducer, stop_event=None) -> int:
    """Parse `argv`, send the messages and return the process exit status."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else EXIT_USAGE

    configure_logging(args.log_level)
    options = vars(args)

    try:
        count = required_options(options)
        settings = resolve_settings(options)
    except MissingRequiredOption as e:
        logger.error(f"{e}. --topic, --metadata.broker.list and --num-of-messages-to-send "
                     f"are required cl params. Rerun with -h for more info.")
        return EXIT_USAGE
    except ConfigurationError as e:
        logger.error(f"Invalid option {e}. Rerun with -h for more info.")
        return EXIT_USAGE

    logger.debug(f"Producer settings: {settings.as_properties()}")

    try:
        result = run_driver(settings, count, producer_factory=producer_factory, stop_event=stop_event)
    except ClientConstructionError as e:
        logger.error(f"Could not start producer: {e}")
        return EXIT_FAILURE
    except SendError as e:
        logger.error(f"Aborted at message {e.sequence}; {e.sent} messages were sent before the failure: {e.cause}")
        return EXIT_FAILURE

    if result.interrupted:
        return EXIT_INTERRUPTED
    return EXIT_OK if result.complete else EXIT_FAILURE


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
