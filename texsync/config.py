"""Configuration management for texsync.

Values are resolved in this order: environment variables, the JSON config
file at ``~/.config/texsync/config``, built-in defaults.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from .exceptions import TexsyncConfigError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_RAW_URL = "https://raw.githubusercontent.com"
DEFAULT_USER_AGENT = "NCAA-NEXT-Textures-Downloader"

# Repository holding the texture pack
DEFAULT_REPO_OWNER = "maddendeluxe"
DEFAULT_REPO_NAME = "madden09deluxe"
DEFAULT_BRANCH = "main"

# The target folder name (the PS2 game identifier like SLUS-XXXXX)
DEFAULT_TARGET_FOLDER = "SLUS-21770"

# Path within the repo that mirrors the target folder
DEFAULT_SPARSE_PATH = "textures/SLUS-21770"

# config key -> (environment variables, default)
_SETTINGS: dict[str, tuple[tuple[str, ...], str | None]] = {
    "github_token": (("TEXSYNC_GITHUB_TOKEN", "GITHUB_TOKEN"), None),
    "api_url": (("TEXSYNC_API_URL",), DEFAULT_API_URL),
    "raw_url": (("TEXSYNC_RAW_URL",), DEFAULT_RAW_URL),
    "user_agent": (("TEXSYNC_USER_AGENT",), DEFAULT_USER_AGENT),
    "repo_owner": (("TEXSYNC_REPO_OWNER",), DEFAULT_REPO_OWNER),
    "repo_name": (("TEXSYNC_REPO_NAME",), DEFAULT_REPO_NAME),
    "branch": (("TEXSYNC_BRANCH",), DEFAULT_BRANCH),
    "target_folder": (("TEXSYNC_TARGET_FOLDER",), DEFAULT_TARGET_FOLDER),
    "sparse_path": (("TEXSYNC_SPARSE_PATH",), DEFAULT_SPARSE_PATH),
}


class Config:
    """Resolved texsync settings."""

    def __init__(self, config_dir: Path | None = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ~/.config/texsync
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "texsync"
        self.config_dir = config_dir
        self.config_file = config_dir / "config"

    def get_config_path(self) -> Path:
        """Return the path of the JSON config file."""
        return self.config_file

    def _load_file(self) -> dict[str, Any]:
        if not self.config_file.exists():
            return {}
        try:
            with open(self.config_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise TexsyncConfigError(
                f"Failed to read config file {self.config_file}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise TexsyncConfigError(
                f"Config file {self.config_file} must contain a JSON object"
            )
        return data

    def get(self, key: str) -> str | None:
        """Resolve a single setting.

        Args:
            key: Setting name (e.g. "repo_owner")

        Returns:
            The resolved value, or None if unset and without default

        Raises:
            TexsyncConfigError: If the key is unknown
        """
        if key not in _SETTINGS:
            raise TexsyncConfigError(f"Unknown config key: {key}")
        env_vars, default = _SETTINGS[key]
        for var in env_vars:
            value = os.environ.get(var)
            if value:
                return value
        value = self._load_file().get(key)
        if value is not None:
            return str(value)
        return default

    def save_value(self, key: str, value: str) -> None:
        """Persist a setting to the config file.

        Args:
            key: Setting name
            value: New value
        """
        if key not in _SETTINGS:
            raise TexsyncConfigError(f"Unknown config key: {key}")
        data = self._load_file()
        data[key] = value
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        # Token may live in this file
        self.config_file.chmod(0o600)
        logger.debug(f"Saved config key {key} to {self.config_file}")

    def as_dict(self) -> dict[str, str | None]:
        """All resolved settings, with the token masked."""
        values = {key: self.get(key) for key in _SETTINGS}
        if values["github_token"]:
            values["github_token"] = "****"
        return values

    @property
    def github_token(self) -> str | None:
        return self.get("github_token")

    @property
    def api_url(self) -> str:
        return self.get("api_url") or DEFAULT_API_URL

    @property
    def raw_url(self) -> str:
        return self.get("raw_url") or DEFAULT_RAW_URL

    @property
    def user_agent(self) -> str:
        return self.get("user_agent") or DEFAULT_USER_AGENT

    @property
    def repo_owner(self) -> str:
        return self.get("repo_owner") or DEFAULT_REPO_OWNER

    @property
    def repo_name(self) -> str:
        return self.get("repo_name") or DEFAULT_REPO_NAME

    @property
    def branch(self) -> str:
        return self.get("branch") or DEFAULT_BRANCH

    @property
    def target_folder(self) -> str:
        return self.get("target_folder") or DEFAULT_TARGET_FOLDER

    @property
    def sparse_path(self) -> str:
        return (self.get("sparse_path") or DEFAULT_SPARSE_PATH).strip("/")


config = Config()
