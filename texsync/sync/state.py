"""Persisted application state.

Stores the configured textures directory and the last revision a sync
completed against. Only the CLI reads and writes this file; the sync engine
receives the directory as an argument and returns the new revision.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Persisted texsync state."""

    textures_path: Optional[str] = None
    """Directory containing the target folder"""

    last_sync_revision: Optional[str] = None
    """Commit SHA of the last successful sync"""

    last_sync_at: Optional[str] = None
    """ISO timestamp of the last successful sync"""

    def to_dict(self) -> dict:
        """Convert state to dictionary for JSON serialization."""
        return {
            "textures_path": self.textures_path,
            "last_sync_revision": self.last_sync_revision,
            "last_sync_at": self.last_sync_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppState":
        """Create AppState from dictionary."""
        return cls(
            textures_path=data.get("textures_path"),
            last_sync_revision=data.get("last_sync_revision"),
            last_sync_at=data.get("last_sync_at"),
        )


class StateManager:
    """Loads and saves AppState as JSON."""

    def __init__(self, state_dir: Optional[Path] = None):
        """Initialize state manager.

        Args:
            state_dir: Directory to store the state file. Defaults to
                      ~/.config/texsync/
        """
        if state_dir is None:
            state_dir = Path.home() / ".config" / "texsync"
        self.state_dir = state_dir
        self.state_file = state_dir / "state.json"

    def load(self) -> AppState:
        """Load the state, or defaults if none was saved yet.

        A corrupt state file is reported and treated as empty.
        """
        if not self.state_file.exists():
            logger.debug(f"No state found at {self.state_file}")
            return AppState()

        try:
            with open(self.state_file, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("state is not a JSON object")
            return AppState.from_dict(data)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load state from {self.state_file}: {e}")
            return AppState()

    def save(self, state: AppState) -> None:
        """Write the state to disk."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        with open(self.state_file, "w", encoding="utf-8") as f:
            json.dump(state.to_dict(), f, indent=2)
        logger.debug(f"Saved state to {self.state_file}")

    def set_textures_path(self, path: Path) -> AppState:
        """Update just the textures directory."""
        state = self.load()
        state.textures_path = str(path)
        self.save(state)
        return state

    def record_sync(self, revision: str) -> AppState:
        """Remember the revision of a successful sync."""
        state = self.load()
        state.last_sync_revision = revision
        state.last_sync_at = datetime.now().isoformat()
        self.save(state)
        return state
