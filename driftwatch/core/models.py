"""Data models shared by the drift engine and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator, Mapping, Sequence

from typing_extensions import TypedDict

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class WorkItem:
    """One directory and the workspaces declared for it."""

    directory: str
    workspaces: tuple[str, ...]


class WorkspaceSet(Mapping[str, tuple[str, ...]]):
    """Read-only mapping of directory -> declared workspace names.

    Built once per run from the repo project configuration and shared by
    reference with both scheduler passes.
    """

    def __init__(self, entries: Mapping[str, Sequence[str]] | None = None) -> None:
        self._entries: dict[str, tuple[str, ...]] = {
            directory: tuple(workspaces) for directory, workspaces in (entries or {}).items()
        }

    def __getitem__(self, directory: str) -> tuple[str, ...]:
        return self._entries[directory]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"WorkspaceSet({self._entries!r})"

    def sorted_directories(self) -> list[str]:
        """Directories in lexicographic order; this is the submission order."""
        return sorted(self._entries)

    def work_items(self) -> list[WorkItem]:
        return [WorkItem(directory, self._entries[directory]) for directory in self.sorted_directories()]

    def total_workspaces(self, should_skip: Callable[[str], bool] | None = None) -> int:
        """Count declared workspaces in directories that are not skipped."""
        return sum(
            len(workspaces)
            for directory, workspaces in self._entries.items()
            if should_skip is None or not should_skip(directory)
        )


@dataclass(frozen=True)
class PlanSummary:
    """Classified result of one plan query."""

    locked: bool
    has_changes: bool
    summary_text: str = ""


# ==================== Cache keys and records ====================


@dataclass(frozen=True)
class DriftCacheKey:
    directory: str
    workspace: str

    def __str__(self) -> str:
        return f"{self.directory}#{self.workspace}"


@dataclass(frozen=True)
class WorkspaceCacheKey:
    directory: str

    def __str__(self) -> str:
        return self.directory


class DriftCacheRecordDict(TypedDict):
    """Serialized drift-check record."""

    observed_at: str
    drifted: bool
    error_text: str | None


class WorkspaceCacheRecordDict(TypedDict):
    """Serialized workspace listing record."""

    observed_at: str
    remote_workspaces: list[str]


@dataclass(frozen=True)
class DriftCacheRecord:
    observed_at: datetime
    drifted: bool
    error_text: str | None = None

    def age(self, now: datetime) -> float:
        return (_aware(now) - _aware(self.observed_at)).total_seconds()

    def to_dict(self) -> DriftCacheRecordDict:
        return {
            "observed_at": _aware(self.observed_at).isoformat(),
            "drifted": self.drifted,
            "error_text": self.error_text,
        }

    @classmethod
    def from_dict(cls, data: DriftCacheRecordDict) -> DriftCacheRecord:
        return cls(
            observed_at=_aware(datetime.fromisoformat(data["observed_at"])),
            drifted=bool(data["drifted"]),
            error_text=data.get("error_text"),
        )


@dataclass(frozen=True)
class WorkspaceCacheRecord:
    observed_at: datetime
    remote_workspaces: tuple[str, ...] = ()

    def age(self, now: datetime) -> float:
        return (_aware(now) - _aware(self.observed_at)).total_seconds()

    def to_dict(self) -> WorkspaceCacheRecordDict:
        return {
            "observed_at": _aware(self.observed_at).isoformat(),
            "remote_workspaces": list(self.remote_workspaces),
        }

    @classmethod
    def from_dict(cls, data: WorkspaceCacheRecordDict) -> WorkspaceCacheRecord:
        return cls(
            observed_at=_aware(datetime.fromisoformat(data["observed_at"])),
            remote_workspaces=tuple(str(w) for w in data["remote_workspaces"]),
        )


@dataclass
class RunReport:
    """Outcome counters of one drift run."""

    directories: int = 0
    total_workspaces: int = 0
    drifted_workspaces: int = 0
    reconciled: bool = False
    started_at: datetime = field(default_factory=utc_now)
    finished_at: datetime | None = None

    @property
    def undrifted_workspaces(self) -> int:
        return self.total_workspaces - self.drifted_workspaces
