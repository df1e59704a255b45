"""Data models for the sync pipeline."""
import re
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class RawRecord:
    """One <item> from the interests feed."""

    title: str
    link: str
    guid: str
    published: str
    description: str


@dataclass(frozen=True)
class CategoryRule:
    """Maps a title prefix to a collection table and status label."""

    pattern: re.Pattern
    file: str
    status: str
    media_type: str  # book, movie, music, game


@dataclass(frozen=True)
class NormalizedRecord:
    """A row ready to be written to a collection table."""

    name: str
    link: str
    date: str
    rating: str
    status: str
    comment: str

    def as_row(self) -> list[str]:
        return [self.name, self.link, self.date, self.rating, self.status, self.comment]


@dataclass
class SyncCursor:
    """Ids seen in the most recent successful run."""

    known_ids: set[str] = field(default_factory=set)
    last_sync: str | None = None


@dataclass
class AppendResult:
    """Outcome of a single append_if_absent call."""

    written: bool
    path: Path


@dataclass
class SyncResult:
    """Counters for one sync run."""

    fetched: int = 0
    written: int = 0
    duplicates: int = 0
    known: int = 0
    unclassified: int = 0
    failed: int = 0
    failures: list[tuple[RawRecord, str]] = field(default_factory=list)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.failed == 0
