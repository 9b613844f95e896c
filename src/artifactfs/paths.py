"""Scheme-agnostic path helpers.

Pure string functions shared by every backend. Remote paths such as
``s3://bucket/key`` and local paths are handled with the same rules: the
separator is always ``/`` and a path is absolute when it starts with ``/``.
"""

from __future__ import annotations

SEPARATOR = "/"


def is_absolute_path(path: str) -> bool:
    """Return True if ``path`` starts at the filesystem root."""
    return path.startswith(SEPARATOR)


def _strip_trailing_separators(joined: str) -> str:
    stripped = joined.rstrip(SEPARATOR)
    if not stripped:
        return SEPARATOR
    if stripped.endswith(":"):
        # Scheme root such as "s3://" keeps both slashes.
        return joined
    return stripped + SEPARATOR


def join_path(*segments: str) -> str:
    """Join path segments with exactly one separator between them.

    Empty segments are skipped. An absolute segment discards everything
    joined before it, like ``cd /abs`` in a shell.

    Examples:
        >>> join_path("models", "resnet", "1")
        'models/resnet/1'
        >>> join_path("s3://bucket/", "dir")
        's3://bucket/dir'
        >>> join_path("a", "/etc", "hosts")
        '/etc/hosts'
    """
    joined = ""
    for segment in segments:
        if not segment:
            continue
        if not joined or is_absolute_path(segment):
            joined = segment
        elif joined.endswith(SEPARATOR):
            joined = _strip_trailing_separators(joined) + segment
        else:
            joined = joined + SEPARATOR + segment
    return joined


def base_name(path: str) -> str:
    """Return the last component of ``path``, ignoring trailing separators.

    The base name of a root-only path is the empty string.
    """
    trimmed = path.rstrip(SEPARATOR)
    if not trimmed:
        return ""
    return trimmed.rsplit(SEPARATOR, 1)[-1]


def dir_name(path: str) -> str:
    """Return everything before the last component of ``path``.

    Returns ``"."`` when there is no separator and ``"/"`` for root-only
    paths or direct children of the root.
    """
    if not path:
        return path
    trimmed = path.rstrip(SEPARATOR)
    if not trimmed:
        return SEPARATOR
    idx = trimmed.rfind(SEPARATOR)
    if idx == -1:
        return "."
    if idx == 0:
        return SEPARATOR
    return trimmed[:idx]


def relative_path(path: str, root: str) -> str:
    """Return ``path`` relative to ``root`` (both given in the same scheme).

    Raises:
        ValueError: If ``path`` does not live under ``root``.
    """
    prefix = root.rstrip(SEPARATOR)
    if path == prefix:
        return ""
    if not path.startswith(prefix + SEPARATOR):
        raise ValueError(f"{path!r} is not under {root!r}")
    return path[len(prefix) :].lstrip(SEPARATOR)
