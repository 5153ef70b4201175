"""Persistence of the cached latest-issue hint."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from schemas.state import BuildState

logger = logging.getLogger(__name__)


class HintStore(Protocol):
    """Where the latest-issue hint is read from and written to."""

    def load_hint(self) -> int | None: ...

    def save_hint(self, issue: int) -> None: ...


def load_state(state_file: Path) -> BuildState:
    """Load state from a JSON file.

    A missing or unreadable file yields an empty state.

    Args:
        state_file: Path to the JSON state file

    Returns:
        The loaded state
    """
    if not state_file.exists():
        return BuildState()

    try:
        with state_file.open("r") as f:
            return BuildState.model_validate(json.load(f))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Ignoring unreadable state file {state_file}: {e}")
        return BuildState()


def dump_state(state: BuildState, destination: Path) -> None:
    """Save state to a JSON file, replacing any previous file atomically.

    Args:
        state: The state to save
        destination: Path where the state file should be written
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = destination.with_name(destination.name + ".tmp")
    tmp_path.write_text(state.model_dump_json(indent=2))
    tmp_path.replace(destination)


class StateFile:
    """Hint store backed by a JSON state file.

    Example:
        store = StateFile(Path("./workspace/state.json"))
        hint = store.load_hint()
        store.save_hint(1650)
    """

    def __init__(self, path: Path):
        self.path = path

    def __repr__(self) -> str:
        return f"StateFile('{self.path}')"

    def load_hint(self) -> int | None:
        return load_state(self.path).cached_latest_issue

    def save_hint(self, issue: int) -> None:
        state = load_state(self.path)
        state.cached_latest_issue = issue
        state.updated_at = datetime.now()
        dump_state(state, self.path)
        logger.debug(f"Saved latest issue hint {issue} to {self.path}")


class MemoryHintStore:
    """Hint store that keeps the hint in memory only."""

    def __init__(self, hint: int | None = None):
        self.hint = hint

    def load_hint(self) -> int | None:
        return self.hint

    def save_hint(self, issue: int) -> None:
        self.hint = issue
