import re
import threading

import pytest

from demo_producer.producer import EXIT_FAILURE, EXIT_INTERRUPTED, EXIT_OK, EXIT_USAGE, build_parser, run

BASE = ["--topic=orders", "--metadata.broker.list=localhost:9092"]


def test_end_to_end_sends_numbered_messages(recorder):
    code = run(BASE + ["--num-of-messages-to-send=5"], producer_factory=recorder)

    assert code == EXIT_OK
    producer = recorder.made[0]
    bodies = [m.decode("utf-8") for m in producer.sent]
    assert len(bodies) == 5
    prefixes = {b.split(": ")[0] for b in bodies}
    assert len(prefixes) == 1
    run_id = prefixes.pop()
    assert re.match(r"^[0-9a-f]+$", run_id)
    assert bodies == [f"{run_id}: {i}" for i in range(5)]
    assert producer.closed


def test_zero_messages_exits_ok(recorder):
    assert run(BASE + ["--num-of-messages-to-send", "0"], producer_factory=recorder) == EXIT_OK
    assert recorder.made[0].sent == []


def test_options_reach_the_producer(recorder):
    run(
        BASE
        + [
            "--num-of-messages-to-send=1",
            "--producer.type=sync",
            "--request.required.acks=-1",
            "--compression.codec=gzip",
            "--client.id=demo",
            "--queue.enqueue.timeout.ms=0",
        ],
        producer_factory=recorder,
    )

    settings = recorder.made[0].settings
    assert settings.producer_type == "sync"
    assert settings.required_acks == -1
    assert settings.compression_codec == "gzip"
    assert settings.client_id == "demo"
    assert settings.queue_enqueue_timeout_ms == 0
    assert settings.batch_num_messages == 200


@pytest.mark.parametrize(
    "argv",
    [
        ["--metadata.broker.list=localhost:9092", "--num-of-messages-to-send=5"],
        ["--topic=orders", "--num-of-messages-to-send=5"],
        BASE,
    ],
)
def test_missing_required_option_is_a_usage_error(argv, recorder, caplog):
    assert run(argv, producer_factory=recorder) == EXIT_USAGE
    assert recorder.made == []
    assert "Rerun with -h" in caplog.text


def test_invalid_value_is_a_usage_error(recorder):
    assert run(BASE + ["--num-of-messages-to-send=-3"], producer_factory=recorder) == EXIT_USAGE
    assert recorder.made == []


def test_bad_choice_is_rejected_by_the_parser(recorder):
    assert run(BASE + ["--num-of-messages-to-send=1", "--producer.type=maybe"], producer_factory=recorder) == 2
    assert recorder.made == []


def test_help_exits_zero(capsys):
    assert run(["-h"]) == 0
    assert "--queue.enqueue.timeout.ms" in capsys.readouterr().out


def test_construction_failure_exits_non_zero(broken_factory, caplog):
    assert run(BASE + ["--num-of-messages-to-send=3"], producer_factory=broken_factory) == EXIT_FAILURE
    assert "Could not start producer" in caplog.text


def test_send_failure_exits_non_zero(recorder, caplog):
    recorder.options["fail_at"] = 2

    assert run(BASE + ["--num-of-messages-to-send=5"], producer_factory=recorder) == EXIT_FAILURE
    assert "Aborted at message 2; 2 messages were sent" in caplog.text
    assert recorder.made[0].closed


def test_dropped_messages_exit_non_zero(recorder):
    recorder.options["drop_at"] = {0}
    assert run(BASE + ["--num-of-messages-to-send=3"], producer_factory=recorder) == EXIT_FAILURE
    assert len(recorder.made[0].sent) == 2


def test_parser_defaults_are_unset():
    args = vars(build_parser().parse_args([]))
    assert args["metadata.broker.list"] is None
    assert args["num-of-messages-to-send"] is None
    assert args["log_level"] == "INFO"


def test_stop_event_exits_interrupted(recorder):
    stop = threading.Event()
    stop.set()

    code = run(BASE + ["--num-of-messages-to-send=5"], producer_factory=recorder, stop_event=stop)

    assert code == EXIT_INTERRUPTED
    assert recorder.made[0].sent == []
    assert recorder.made[0].closed


def test_keyboard_interrupt_exits_interrupted(recorder, caplog):
    recorder.options.update(fail_at=3, error=KeyboardInterrupt())

    code = run(BASE + ["--num-of-messages-to-send=10"], producer_factory=recorder)

    assert code == EXIT_INTERRUPTED
    assert len(recorder.made[0].sent) == 3
    assert recorder.made[0].closed
    assert "Interrupted by user after sending 3 messages" in caplog.text
