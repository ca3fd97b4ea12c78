"""JSONL turn trace tests."""
import json

from tripflow.core.debug_logger import DebugLogger


def read_events(log_file):
    return [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]


class TestDebugLogger:

    def test_disabled_writes_nothing(self, tmp_path):
        log_file = tmp_path / "turns.jsonl"

        DebugLogger(enabled=False, log_file=log_file).log_turn(
            conversation_id="c1", slot="destination", raw_value="Paris",
            status="accepted", expected_slot="origin",
        )

        assert not log_file.exists()

    def test_turn_event_keeps_snapshot_as_given(self, tmp_path):
        log_file = tmp_path / "nested" / "turns.jsonl"
        snapshot = {"destination": {"value": "Paris", "filled": True, "locked": True}}

        DebugLogger(enabled=True, log_file=log_file).log_turn(
            conversation_id="c1", slot="destination", raw_value="Paris",
            status="accepted", expected_slot="origin", slots=snapshot, version=1,
        )

        event = read_events(log_file)[0]
        assert event["event"] == "turn"
        assert event["slots"] == snapshot
        assert event["version"] == 1
        assert "timestamp" in event

    def test_long_raw_value_is_truncated(self, tmp_path):
        log_file = tmp_path / "turns.jsonl"

        DebugLogger(enabled=True, log_file=log_file).log_turn(
            conversation_id="c1", slot=None, raw_value="x" * 2000,
            status="clarification", expected_slot="destination",
        )

        event = read_events(log_file)[0]
        assert len(event["raw_value"]) == DebugLogger.MAX_TEXT_LENGTH
        assert event["slots"] == {}

    def test_write_failure_does_not_raise(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")

        DebugLogger(enabled=True, log_file=blocker / "turns.jsonl").log_turn(
            conversation_id="c1", slot="budget", raw_value="$100",
            status="rejected_validation", expected_slot="destination",
        )
