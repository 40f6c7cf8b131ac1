"""Data models for GitHub API responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .exceptions import RemoteInvalidResponseError


@dataclass
class TreeEntry:
    """One entry of a git tree listing."""

    path: str
    """Path relative to the listed tree (a plain name when non-recursive)"""

    type: str
    """Entry type: "blob", "tree" or "commit" (submodule)"""

    sha: str
    """Git object id; for blobs this is the content id"""

    @property
    def is_blob(self) -> bool:
        return self.type == "blob"

    @property
    def is_tree(self) -> bool:
        return self.type == "tree"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TreeEntry:
        try:
            return cls(
                path=str(data["path"]),
                type=str(data["type"]),
                sha=str(data["sha"]),
            )
        except (KeyError, TypeError) as e:
            raise RemoteInvalidResponseError(
                200, str(data), f"Malformed tree entry: {data!r}"
            ) from e


@dataclass
class TreeListing:
    """A git tree listing as returned by ``GET /git/trees/{sha}``."""

    sha: str
    entries: list[TreeEntry] = field(default_factory=list)
    truncated: bool = False

    @classmethod
    def from_api_response(cls, data: Any) -> TreeListing:
        """Parse the JSON payload of a tree listing.

        Args:
            data: Decoded JSON response

        Returns:
            TreeListing instance

        Raises:
            RemoteInvalidResponseError: If the payload is not a tree listing
        """
        if not isinstance(data, dict) or not isinstance(data.get("tree"), list):
            raise RemoteInvalidResponseError(
                200, str(data)[:200], "Unexpected tree response from API"
            )
        return cls(
            sha=str(data.get("sha", "")),
            entries=[TreeEntry.from_dict(e) for e in data["tree"]],
            truncated=bool(data.get("truncated", False)),
        )

    def find_child_tree(self, name: str) -> TreeEntry | None:
        """Return the direct child directory called ``name``, if any."""
        for entry in self.entries:
            if entry.path == name and entry.is_tree:
                return entry
        return None
