"""Path sanitization and resolution: keeping requests inside the base.

The request target is untrusted input that ends up next to the
filesystem, so it is handled in two separate steps:

1. **Sanitize**: turn the target into a ``SanitizedPath``: an ordered
   tuple of plain names with no ``..``, no ``.``, and nothing the
   platform would read as a separator or a drive.  Any ``..`` is a hard
   rejection; the sanitizer never tries to "fix" a path by collapsing it.
2. **Resolve**: join those names onto the base directory.  Because the
   names are already safe, the join cannot leave the base, so the
   resolver never touches the filesystem and never follows symlinks.

Percent-escapes are decoded once, *before* splitting on ``/``.  That way
``%2e%2e`` is seen as ``..`` and rejected, and ``%2F`` becomes an
ordinary separator rather than hiding inside a segment.
"""

from dataclasses import dataclass
from pathlib import Path, PurePath
from urllib.parse import unquote

from py_pages.errors import RejectReason, SanitizeError

DEFAULT_DOCUMENT = "index.html"

_CURRENT_DIR = "."
_PARENT_DIR = ".."
_NUL = "\x00"


def _segment_problem(segment: str) -> RejectReason | None:
    """Return why *segment* is unsafe, or None if it is a plain name."""
    if segment == _PARENT_DIR:
        return RejectReason.TRAVERSAL_ATTEMPT
    if segment == _CURRENT_DIR or not segment.strip() or _NUL in segment:
        return RejectReason.INVALID_SEGMENT
    # Catches platform separators and drive/anchor prefixes (e.g. "C:" on Windows).
    pure = PurePath(segment)
    if pure.anchor or pure.parts != (segment,):
        return RejectReason.INVALID_SEGMENT
    return None


@dataclass(frozen=True)
class SanitizedPath:
    """A relative, traversal-free path as an ordered tuple of names.

    Construction validates every segment, so a SanitizedPath holding
    ``..`` cannot exist, whether it came from ``sanitize`` or not.

    Attributes:
        segments: The path components, outermost first.

    """

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        """Reject empty paths and unsafe segments."""
        if not self.segments:
            msg = "SanitizedPath needs at least one segment"
            raise ValueError(msg)
        for segment in self.segments:
            problem = _segment_problem(segment)
            if problem is not None:
                msg = f"Unsafe path segment {segment!r}: {problem}"
                raise ValueError(msg)

    def __str__(self) -> str:
        """Format as a slash-separated relative path."""
        return "/".join(self.segments)


def _strip_query_and_fragment(target: str) -> str:
    """Cut *target* at the first ``?`` or ``#``."""
    for index, char in enumerate(target):
        if char in "?#":
            return target[:index]
    return target


def sanitize(target: str) -> SanitizedPath:
    """Turn a raw request target into a SanitizedPath.

    Steps, in order: drop query and fragment; map ``/`` (or nothing) to
    the default document; percent-decode once; split on ``/`` dropping
    empty segments; validate each segment.

    Args:
        target: The request target exactly as it appeared on the wire.

    Returns:
        The sanitized path.

    Raises:
        SanitizeError: ``TRAVERSAL_ATTEMPT`` if any segment is ``..``;
            ``INVALID_SEGMENT`` for ``.``, blank, NUL-bearing or
            otherwise unsafe segments, or undecodable escapes.

    """
    path = _strip_query_and_fragment(target)
    if path in {"", "/"}:
        return SanitizedPath((DEFAULT_DOCUMENT,))

    try:
        decoded = unquote(path, errors="strict")
    except UnicodeDecodeError as e:
        msg = f"Undecodable percent-escape in {path!r}"
        raise SanitizeError(RejectReason.INVALID_SEGMENT, msg) from e

    segments = tuple(part for part in decoded.split("/") if part)
    for segment in segments:
        problem = _segment_problem(segment)
        if problem is RejectReason.TRAVERSAL_ATTEMPT:
            msg = f"Parent-directory segment in {target!r}"
            raise SanitizeError(problem, msg)
        if problem is not None:
            msg = f"Invalid path segment {segment!r} in {target!r}"
            raise SanitizeError(problem, msg)

    if not segments:
        return SanitizedPath((DEFAULT_DOCUMENT,))
    return SanitizedPath(segments)


def resolve(base: Path, sanitized: SanitizedPath) -> Path:
    """Join *sanitized* onto *base*.

    Pure and total: no filesystem access, no symlink resolution.  The
    result is a strict descendant of *base* because every segment is a
    plain name.
    """
    return base.joinpath(*sanitized.segments)
