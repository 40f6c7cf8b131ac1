"""Local directory scanning for sync operations."""

import logging
from pathlib import Path
from typing import Optional

from ..config import config
from ..exceptions import HashError, MissingTargetFolderError, ScanError
from ..utils import hash_file
from .policy import is_excluded_subtree

logger = logging.getLogger(__name__)


class LocalTreeScanner:
    """Scans the local target folder into a path -> content id mapping.

    Hidden entries (leading ``.``) and the excluded subtree are skipped,
    symbolic links and special files are skipped with a warning. Content
    ids are git blob ids, so they compare directly with remote listings.

    Examples:
        >>> scanner = LocalTreeScanner()
        >>> files = scanner.scan(Path("~/PCSX2/textures").expanduser())
        >>> sorted(files)[:2]
        ['menus/-logo.png', 'menus/background.png']
    """

    def __init__(self, target_folder: Optional[str] = None):
        """Initialize local scanner.

        Args:
            target_folder: Name of the folder under the root that is synced
                (uses config if not provided)
        """
        self.target_folder = target_folder or config.target_folder

    def target_dir(self, root_dir: Path) -> Path:
        """Return the synced folder inside a textures root."""
        return Path(root_dir) / self.target_folder

    def should_ignore(self, item: Path, relative_path: str) -> bool:
        """Check if a directory entry should be left out of the scan.

        Args:
            item: Entry path
            relative_path: Entry path relative to the target folder

        Returns:
            True if entry should be ignored
        """
        if item.name.startswith("."):
            return True

        if is_excluded_subtree(relative_path):
            logger.debug(f"Ignoring excluded subtree: {relative_path}")
            return True

        return False

    def scan(self, root_dir: Path) -> dict[str, str]:
        """Scan the target folder below a textures root.

        Args:
            root_dir: Directory containing the target folder

        Returns:
            Mapping of relative path (forward slashes) to blob SHA

        Raises:
            MissingTargetFolderError: If the target folder does not exist
            ScanError: If a directory cannot be read
            HashError: If a file cannot be read
        """
        base_path = self.target_dir(root_dir)
        if not base_path.is_dir():
            raise MissingTargetFolderError(base_path)

        files: dict[str, str] = {}
        self._scan_directory(base_path, base_path, files)
        logger.debug(f"Scanned {len(files)} local file(s) in {base_path}")
        return files

    def _scan_directory(
        self, directory: Path, base_path: Path, files: dict[str, str]
    ) -> None:
        try:
            items = sorted(directory.iterdir())
        except OSError as e:
            raise ScanError(directory, e) from e

        for item in items:
            # Use as_posix() to ensure forward slashes on all platforms
            relative_path = item.relative_to(base_path).as_posix()
            if self.should_ignore(item, relative_path):
                continue

            if item.is_symlink():
                logger.warning(f"Skipping symbolic link: {relative_path}")
                continue

            if item.is_dir():
                self._scan_directory(item, base_path, files)
            elif item.is_file():
                try:
                    files[relative_path] = hash_file(item)
                except HashError as e:
                    if isinstance(e.cause, FileNotFoundError):
                        # Deleted between listing and reading
                        logger.debug(f"File vanished during scan: {relative_path}")
                        continue
                    raise
            elif item.exists():
                logger.warning(f"Skipping special file: {relative_path}")
