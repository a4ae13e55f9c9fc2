"""Hierarchical account paths.

A path is an ordered list of segments written as ``"Aufwand : Büro : Material"``.
Every way of building a path normalizes it: segments are trimmed, runs of
whitespace inside a segment collapse to one space, and empty segments are
dropped. Two paths that differ only in spacing are therefore equal and hash
the same.
"""

from dataclasses import dataclass
from enum import Enum
import re
from typing import Iterable, Optional, Union

from tideledger.config import DEFAULT_CONFIG
from tideledger.domain.errors import EmptyPath, ExceedsMaxDepth

SEPARATOR = " : "

_SPLIT = re.compile(r"\s*:\s*")
_WHITESPACE = re.compile(r"\s+")


class DisplayFormat(Enum):
    """Ways of rendering a path for people."""

    ARROW = "arrow"
    LEAF_WITH_DEPTH = "leaf_with_depth"
    COMPACT = "compact"


def _clean(parts: Iterable[str]) -> tuple[str, ...]:
    segments = []
    for part in parts:
        for piece in _SPLIT.split(str(part)):
            piece = _WHITESPACE.sub(" ", piece).strip()
            if piece:
                segments.append(piece)
    return tuple(segments)


@dataclass(frozen=True, order=True)
class AccountPath:
    """Normalized account path; compares and sorts by its segments."""

    segments: tuple[str, ...] = ()

    def __post_init__(self):
        segments = self.segments
        if isinstance(segments, str):
            segments = [segments]
        object.__setattr__(self, "segments", _clean(segments))

    @classmethod
    def parse(cls, raw: Optional[str]) -> "AccountPath":
        """Normalize a raw path string. Never fails; blank input gives an empty path."""
        return cls(_clean([raw or ""]))

    @classmethod
    def of(cls, *segments: str) -> "AccountPath":
        return cls(tuple(segments))

    @classmethod
    def coerce(cls, value: "PathLike") -> "AccountPath":
        if isinstance(value, AccountPath):
            return value
        return cls.parse(value)

    @property
    def depth(self) -> int:
        return len(self.segments)

    @property
    def is_empty(self) -> bool:
        return not self.segments

    @property
    def leaf(self) -> Optional[str]:
        return self.segments[-1] if self.segments else None

    @property
    def root(self) -> Optional[str]:
        return self.segments[0] if self.segments else None

    @property
    def parent(self) -> Optional["AccountPath"]:
        """The enclosing path, or None for top-level (and empty) paths."""
        if self.depth <= 1:
            return None
        return AccountPath(self.segments[:-1])

    def ancestors(self) -> list["AccountPath"]:
        """All paths from the root down to and including this one."""
        return [AccountPath(self.segments[:i]) for i in range(1, self.depth + 1)]

    def ancestors_without_self(self) -> list["AccountPath"]:
        return self.ancestors()[:-1]

    def join(self, child: "PathLike") -> "AccountPath":
        return AccountPath(self.segments + AccountPath.coerce(child).segments)

    def is_ancestor_of(self, other: "PathLike") -> bool:
        """True if this path is a strict prefix of ``other``."""
        other = AccountPath.coerce(other)
        return (
            0 < self.depth < other.depth
            and other.segments[: self.depth] == self.segments
        )

    def is_descendant_of(self, other: "PathLike") -> bool:
        return AccountPath.coerce(other).is_ancestor_of(self)

    def is_sibling_of(self, other: "PathLike") -> bool:
        """True for distinct paths sharing the same parent.

        Two top-level paths count as siblings.
        """
        other = AccountPath.coerce(other)
        if self == other or self.is_empty or other.is_empty:
            return False
        return self.segments[:-1] == other.segments[:-1]

    def validate(self, max_depth: int = DEFAULT_CONFIG.max_account_depth) -> "AccountPath":
        """Check the path can name an account.

        Args:
            max_depth: Maximum number of segments

        Returns:
            The path itself

        Raises:
            EmptyPath: If the path has no segments
            ExceedsMaxDepth: If the path is deeper than max_depth
        """
        if self.is_empty:
            raise EmptyPath()
        if self.depth > max_depth:
            raise ExceedsMaxDepth(max_depth, self.depth)
        # Segment content is unrestricted once normalized, so InvalidSegment
        # is never raised here.
        return self

    def is_valid(self, max_depth: int = DEFAULT_CONFIG.max_account_depth) -> bool:
        try:
            self.validate(max_depth)
        except (EmptyPath, ExceedsMaxDepth):
            return False
        return True

    def to_uppercase(self) -> "AccountPath":
        return AccountPath(tuple(segment.upper() for segment in self.segments))

    def display(self, display_format: DisplayFormat = DisplayFormat.ARROW) -> str:
        """Render the path for people.

        ARROW joins segments with arrows ("Aufwand → Büro"), LEAF_WITH_DEPTH
        indents the leaf two spaces per level below the root ("  └── Büro"),
        and COMPACT shortens every segment except the last two to its first
        letter ("A : B : Material : Papier").
        """
        if self.is_empty:
            return ""
        if display_format is DisplayFormat.ARROW:
            return " → ".join(self.segments)
        if display_format is DisplayFormat.LEAF_WITH_DEPTH:
            return f"{'  ' * (self.depth - 1)}└── {self.leaf}"
        if display_format is DisplayFormat.COMPACT:
            head = [segment[0] for segment in self.segments[:-2]]
            return SEPARATOR.join(head + list(self.segments[-2:]))
        raise ValueError(f"Unknown display format: {display_format}")

    def __str__(self) -> str:
        return SEPARATOR.join(self.segments)


PathLike = Union[AccountPath, str]


def normalize(raw: PathLike) -> AccountPath:
    """Normalize a path given as a string or an AccountPath."""
    return AccountPath.coerce(raw)


def join(parent: PathLike, child: PathLike) -> AccountPath:
    """Join two paths; an empty side yields the other side."""
    return normalize(parent).join(child)


def is_ancestor(ancestor: PathLike, path: PathLike) -> bool:
    return normalize(ancestor).is_ancestor_of(path)


def is_descendant(path: PathLike, ancestor: PathLike) -> bool:
    return normalize(path).is_descendant_of(ancestor)


def is_sibling(left: PathLike, right: PathLike) -> bool:
    return normalize(left).is_sibling_of(right)
