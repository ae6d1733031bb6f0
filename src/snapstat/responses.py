"""
Typed views of the Elasticsearch responses we scrape.

Each type has a `from_json` that takes the already-parsed JSON value and
raises ValueError when the shape is wrong. Missing keys and nulls fall back
to zero values, the same way Elasticsearch clients usually treat optional
fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _expect_object(value: Any, what: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what}: expected an object, got {type(value).__name__}")
    return value


def _expect_list(value: Any, what: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{what}: expected an array, got {type(value).__name__}")
    return value


_INT64_MIN, _INT64_MAX = -(2 ** 63), 2 ** 63 - 1


def _int(value: Any, what: str) -> int:
    if value is None:
        return 0
    # bool is an int subclass, and floats (1.5, 1e400) are not integer fields
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{what}: expected an integer, got {value!r}")
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"{what}: {value} does not fit in 64 bits")
    return value


def _str(value: Any, what: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{what}: expected a string, got {value!r}")
    return value


@dataclass
class ShardStats:
    total: int = 0
    failed: int = 0
    successful: int = 0

    @classmethod
    def from_json(cls, data: Any) -> "ShardStats":
        obj = _expect_object(data, "shards")
        return cls(
            total=_int(obj.get("total"), "shards.total"),
            failed=_int(obj.get("failed"), "shards.failed"),
            successful=_int(obj.get("successful"), "shards.successful"),
        )


@dataclass
class SnapshotInfo:
    """One entry of GET /_snapshot/<repo>/_all."""

    snapshot: str = ""
    uuid: str = ""
    version_id: int = 0
    version: str = ""
    indices: List[str] = field(default_factory=list)
    state: str = ""
    start_time_in_millis: int = 0
    end_time_in_millis: int = 0
    duration_in_millis: int = 0
    failures: List[Any] = field(default_factory=list)
    shards: ShardStats = field(default_factory=ShardStats)

    @classmethod
    def from_json(cls, data: Any) -> "SnapshotInfo":
        obj = _expect_object(data, "snapshot")
        return cls(
            snapshot=_str(obj.get("snapshot"), "snapshot"),
            uuid=_str(obj.get("uuid"), "uuid"),
            version_id=_int(obj.get("version_id"), "version_id"),
            version=_str(obj.get("version"), "version"),
            indices=[_str(i, "indices[]") for i in _expect_list(obj.get("indices"), "indices")],
            state=_str(obj.get("state"), "state"),
            start_time_in_millis=_int(obj.get("start_time_in_millis"), "start_time_in_millis"),
            end_time_in_millis=_int(obj.get("end_time_in_millis"), "end_time_in_millis"),
            duration_in_millis=_int(obj.get("duration_in_millis"), "duration_in_millis"),
            failures=list(_expect_list(obj.get("failures"), "failures")),
            shards=ShardStats.from_json(obj.get("shards")),
        )


@dataclass
class SnapshotsResponse:
    """All snapshots of one repository, oldest first."""

    snapshots: List[SnapshotInfo] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Any) -> "SnapshotsResponse":
        obj = _expect_object(data, "snapshots response")
        return cls(snapshots=[
            SnapshotInfo.from_json(s)
            for s in _expect_list(obj.get("snapshots"), "snapshots")
        ])

    @property
    def latest(self) -> Optional[SnapshotInfo]:
        """Last snapshot in the list, or None for an empty repository."""
        return self.snapshots[-1] if self.snapshots else None


@dataclass
class RepositoriesResponse:
    """GET /_snapshot: repository name -> settings. Only the names matter."""

    repositories: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Any) -> "RepositoriesResponse":
        if not isinstance(data, dict):
            raise ValueError(f"repositories: expected an object, got {type(data).__name__}")
        return cls(repositories=dict(data))

    def names(self) -> List[str]:
        return list(self.repositories)


@dataclass
class IndexSettings:
    read_only: bool = False

    @classmethod
    def from_json(cls, data: Any) -> "IndexSettings":
        settings = _expect_object(_expect_object(data, "index").get("settings"), "settings")
        index = _expect_object(settings.get("index"), "settings.index")
        blocks = _expect_object(index.get("blocks"), "settings.index.blocks")
        # Elasticsearch reports settings as strings
        flag = _str(blocks.get("read_only"), "settings.index.blocks.read_only")
        return cls(read_only=flag == "true")


@dataclass
class IndicesSettingsResponse:
    """GET /_all/_settings: index name -> settings."""

    indices: Dict[str, IndexSettings] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Any) -> "IndicesSettingsResponse":
        if not isinstance(data, dict):
            raise ValueError(f"indices settings: expected an object, got {type(data).__name__}")
        return cls(indices={name: IndexSettings.from_json(v) for name, v in data.items()})

    def read_only_count(self) -> int:
        return sum(1 for s in self.indices.values() if s.read_only)
