"""
Mock Elasticsearch snapshot data.

Produces believable snapshot repositories so we can develop against the
exporter without a cluster. Output is deterministic for a given seed. The
last repository is always empty, which exercises the "no snapshots yet"
path.
"""

import random
from typing import Any, Dict, List

_STATES = ["SUCCESS", "SUCCESS", "SUCCESS", "PARTIAL", "FAILED"]
_VERSIONS = [("8.11.1", 8110199), ("8.12.0", 8120099)]
_DAY_MS = 24 * 3600 * 1000


class MockCluster:

    def __init__(
        self,
        seed: int = 42,
        repositories: int = 3,
        snapshots_per_repository: int = 5,
        indices: int = 6,
        now_ms: int = 1_760_000_000_000,
    ):
        self._rng = random.Random(seed)
        self._now_ms = now_ms
        self.index_names = [f"logs-{i:03d}" for i in range(indices)]
        self.read_only = set(self._rng.sample(self.index_names, k=min(2, indices)))

        self._repositories: Dict[str, List[Dict[str, Any]]] = {}
        for r in range(repositories):
            name = f"backups-{r}"
            count = 0 if r == repositories - 1 else snapshots_per_repository
            self._repositories[name] = [self._make_snapshot(name, i, count) for i in range(count)]

    def _make_snapshot(self, repository: str, i: int, count: int) -> Dict[str, Any]:
        # Oldest first, one snapshot per day
        start = self._now_ms - (count - i) * _DAY_MS + self._rng.randint(0, 600) * 1000
        duration = self._rng.randint(30, 900) * 1000
        state = self._rng.choice(_STATES)
        version, version_id = self._rng.choice(_VERSIONS)
        indices = self._rng.sample(self.index_names, k=self._rng.randint(1, len(self.index_names)))

        total = len(indices) * 2
        failed = 0 if state == "SUCCESS" else self._rng.randint(1, total)
        failures = [
            {"index": indices[0], "shard_id": n, "reason": "IndexShardSnapshotFailedException", "status": "INTERNAL_SERVER_ERROR"}
            for n in range(failed)
        ]
        return {
            "snapshot": f"{repository}-snap-{i}",
            "uuid": f"{self._rng.getrandbits(64):016x}",
            "version_id": version_id,
            "version": version,
            "indices": indices,
            "state": state,
            "start_time_in_millis": start,
            "end_time_in_millis": start + duration,
            "duration_in_millis": duration,
            "failures": failures,
            "shards": {"total": total, "failed": failed, "successful": total - failed},
        }

    def repository_names(self) -> List[str]:
        return list(self._repositories)

    def repositories(self) -> Dict[str, Any]:
        """Body of GET /_snapshot."""
        return {
            name: {"type": "fs", "settings": {"location": f"/mnt/backups/{name}", "compress": "true"}}
            for name in self._repositories
        }

    def snapshots(self, repository: str) -> Dict[str, Any]:
        """Body of GET /_snapshot/<repository>/_all. KeyError for unknown repositories."""
        return {"snapshots": list(self._repositories[repository])}

    def indices_settings(self) -> Dict[str, Any]:
        """Body of GET /_all/_settings."""
        body = {}
        for name in self.index_names:
            index: Dict[str, Any] = {"number_of_shards": "1", "number_of_replicas": "1"}
            if name in self.read_only:
                index["blocks"] = {"read_only": "true"}
            body[name] = {"settings": {"index": index}}
        return body
