"""
Debug Logger: JSONL trace of processed dialogue turns.

Enabled with DEBUG_LOGS=true. Each processed turn appends one "turn" event to
DEBUG_LOG_FILE.

Usage:
    from tripflow.core.debug_logger import DebugLogger

    debug_logger = DebugLogger(enabled=True, log_file="logs/turns.jsonl")
    debug_logger.log_turn(
        conversation_id="abc-123",
        slot="destination",
        raw_value="Paris",
        status="accepted",
        expected_slot="origin",
        slots={"destination": {"value": "Paris", "filled": True, "locked": True}},
    )
"""
from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class DebugLogger:
    """
    JSONL logger of dialogue turns.

    Thread-safe. Writes nothing unless enabled.
    """

    MAX_TEXT_LENGTH = 500

    def __init__(self, enabled: bool = False, log_file: Union[str, Path] = "logs/turns.jsonl"):
        self._lock = threading.Lock()
        self.enabled = enabled
        self.log_file = Path(log_file)

    def _write_event(self, event: dict[str, Any]) -> None:
        if not self.enabled:
            return

        event.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        try:
            with self._lock:
                self.log_file.parent.mkdir(parents=True, exist_ok=True)
                with open(self.log_file, "a", encoding="utf-8") as f:
                    f.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")
        except OSError as e:
            # The trace never breaks a turn
            logger.warning(f"Debug log write failed: {e}")

    def log_turn(
        self,
        conversation_id: str,
        slot: Optional[str],
        raw_value: str,
        status: str,
        expected_slot: str,
        slots: Optional[dict[str, Any]] = None,
        version: Optional[int] = None,
    ) -> None:
        """One processed turn."""
        self._write_event({
            "event": "turn",
            "conversation_id": conversation_id,
            "slot": slot,
            "raw_value": raw_value[:self.MAX_TEXT_LENGTH],
            "status": status,
            "expected_slot": expected_slot,
            "version": version,
            "slots": slots or {},
        })
