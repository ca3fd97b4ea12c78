"""
State Store: persistence of TripState between turns.

One JSON document per conversation id (camelCase keys, see TripState.to_dict).

Implementations:
- InMemoryStateStore (tests and development)
- JsonFileStateStore (one <conversation_id>.json file per conversation)

Optimistic concurrency:
- Every persisted mutation increments TripState.version
- save(state, expected_version) fails with StaleStateError when another turn
  saved the conversation after this one loaded it
"""
from __future__ import annotations

import json
import logging
import os
import re
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from tripflow.core.errors import InvalidConversationIdError, StaleStateError, StateStoreError
from tripflow.models.domain import TripState

logger = logging.getLogger(__name__)

CONVERSATION_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]{0,127}$")


def validate_conversation_id(conversation_id: str) -> str:
    """Ids double as storage keys: letters, digits, '_', '-', '.'; at most 128 chars."""
    if not CONVERSATION_ID_PATTERN.match(conversation_id):
        raise InvalidConversationIdError(f"Invalid conversation id: {conversation_id!r}")
    return conversation_id


class StateStore(ABC):
    """Durable key-value persistence of TripState keyed by conversation id."""

    @abstractmethod
    def load(self, conversation_id: str) -> Optional[TripState]:
        """Stored state, or None when the conversation is unknown."""

    @abstractmethod
    def save(self, state: TripState, expected_version: Optional[int] = None) -> None:
        """
        Persist a state.

        Args:
            state: State to write
            expected_version: Version the caller loaded; None writes unconditionally

        Raises:
            StaleStateError: stored version differs from expected_version
            StateStoreError: the store is unavailable
        """

    @abstractmethod
    def delete(self, conversation_id: str) -> bool:
        """Administrative removal. Returns False when nothing was stored."""

    @staticmethod
    def _check_version(conversation_id: str, stored: Optional[int], expected: Optional[int]) -> None:
        if expected is None:
            return
        actual = -1 if stored is None else stored
        if actual != expected:
            raise StaleStateError(conversation_id, expected, actual)


# ==================== IN-MEMORY ====================

class InMemoryStateStore(StateStore):
    """
    Process-local store.

    Keeps serialized documents (not live objects) so callers never share state.
    """

    def __init__(self):
        self._documents: dict[str, dict] = {}
        self._lock = threading.Lock()

    def load(self, conversation_id: str) -> Optional[TripState]:
        with self._lock:
            document = self._documents.get(conversation_id)
        if document is None:
            return None
        return TripState.from_dict(document)

    def save(self, state: TripState, expected_version: Optional[int] = None) -> None:
        document = state.to_dict()
        with self._lock:
            stored = self._documents.get(state.conversation_id)
            self._check_version(
                state.conversation_id,
                stored["version"] if stored is not None else None,
                expected_version,
            )
            self._documents[state.conversation_id] = document

    def delete(self, conversation_id: str) -> bool:
        with self._lock:
            return self._documents.pop(conversation_id, None) is not None

    def __len__(self) -> int:
        return len(self._documents)


# ==================== JSON FILES ====================

class JsonFileStateStore(StateStore):
    """One <conversation_id>.json document per conversation in a directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self._lock = threading.Lock()
        logger.info(f"JSON file state store at {self.directory}")

    def _path(self, conversation_id: str) -> Path:
        return self.directory / f"{validate_conversation_id(conversation_id)}.json"

    def _read(self, path: Path) -> Optional[dict]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            raise StateStoreError(f"Cannot read {path.name}: {e}") from e

    def load(self, conversation_id: str) -> Optional[TripState]:
        document = self._read(self._path(conversation_id))
        if document is None:
            return None
        try:
            return TripState.from_dict(document)
        except ValidationError as e:
            raise StateStoreError(f"Corrupt state document for {conversation_id!r}") from e

    def save(self, state: TripState, expected_version: Optional[int] = None) -> None:
        path = self._path(state.conversation_id)
        payload = json.dumps(state.to_dict(), ensure_ascii=False, indent=2)
        tmp_path = path.with_suffix(".json.tmp")

        with self._lock:
            stored = self._read(path)
            self._check_version(
                state.conversation_id,
                stored.get("version") if stored is not None else None,
                expected_version,
            )
            try:
                self.directory.mkdir(parents=True, exist_ok=True)
                with open(tmp_path, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_path, path)
            except OSError as e:
                raise StateStoreError(f"Cannot write {path.name}: {e}") from e

    def delete(self, conversation_id: str) -> bool:
        path = self._path(conversation_id)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                return False
            except OSError as e:
                raise StateStoreError(f"Cannot delete {path.name}: {e}") from e
        logger.info(f"Deleted conversation state {conversation_id}")
        return True


def create_state_store(backend: str, directory: Union[str, Path] = ".conversation-state") -> StateStore:
    """Store for the STATE_STORE_BACKEND setting."""
    if backend == "memory":
        return InMemoryStateStore()
    if backend == "file":
        return JsonFileStateStore(directory)
    raise ValueError(f"Unknown state store backend: {backend!r}")
