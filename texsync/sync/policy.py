"""Path naming rules shared by every sync component.

Two conventions are encoded here:

* A file whose name starts with ``DISABLED_MARKER`` is a user-disabled copy
  of the file without the marker (``a/-b.png`` disables ``a/b.png``).
* Anything under ``EXCLUDED_SUBTREE`` belongs to the user and is never
  scanned, compared, downloaded or deleted.

All functions are pure and operate on slash-separated relative paths.
"""

from typing import Optional

EXCLUDED_SUBTREE = "user-customs"
DISABLED_MARKER = "-"


def is_excluded_subtree(path: str) -> bool:
    """Check whether a path lies in the user-owned excluded subtree.

    Examples:
        >>> is_excluded_subtree("user-customs/logo.png")
        True
        >>> is_excluded_subtree("menus/logo.png")
        False
    """
    return EXCLUDED_SUBTREE in path


def is_disabled_variant(filename: str) -> bool:
    """Check whether the last segment of a path carries the disabled marker."""
    return filename.rsplit("/", 1)[-1].startswith(DISABLED_MARKER)


def to_disabled_path(path: str) -> str:
    """Return the disabled variant of a path.

    Examples:
        >>> to_disabled_path("a/b/c.png")
        'a/b/-c.png'
        >>> to_disabled_path("c.png")
        '-c.png'
    """
    directory, sep, name = path.rpartition("/")
    return f"{directory}{sep}{DISABLED_MARKER}{name}"


def to_enabled_path(path: str) -> Optional[str]:
    """Return the enabled path of a disabled variant.

    Examples:
        >>> to_enabled_path("a/b/-c.png")
        'a/b/c.png'
        >>> to_enabled_path("-c.png")
        'c.png'
        >>> to_enabled_path("a/b/c.png") is None
        True
    """
    directory, sep, name = path.rpartition("/")
    if not name.startswith(DISABLED_MARKER):
        return None
    return f"{directory}{sep}{name[len(DISABLED_MARKER):]}"
