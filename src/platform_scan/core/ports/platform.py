from typing import Protocol

from platform_scan.api.git import PathPredicate, SearchResult
from platform_scan.models import Environment, GitCommit, Subscription


class GitObjects(Protocol):
    @property
    def project_id(self) -> str: ...

    async def commit(self, sha: str) -> GitCommit: ...

    async def blob_content(self, sha: str) -> bytes: ...

    async def find(self, tree_id: str, predicate: PathPredicate, depth: int, root: str = "") -> list[SearchResult]: ...

    async def lookup(self, tree_id: str, path: str) -> SearchResult | None: ...


class PlatformApi(Protocol):
    async def subscriptions(self, concurrency: int = 1) -> list[Subscription]: ...

    async def environments(self, project_id: str) -> list[Environment]: ...

    def git(self, project_id: str) -> GitObjects: ...
