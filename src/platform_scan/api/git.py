"""Read access to a project's git object graph (commits, trees, blobs) over the API."""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from platform_scan.errors import DecodeError
from platform_scan.models import GitBlob, GitCommit, GitTree, GitTreeItem

if TYPE_CHECKING:
    from platform_scan.api.client import ApiClient

logger = logging.getLogger(__name__)

PathPredicate = Callable[[str], bool]


@dataclass(frozen=True)
class SearchResult:
    path: str
    mode: str
    type: str
    sha: str
    parent: str
    fullpath: str

    @classmethod
    def from_item(cls, item: GitTreeItem, parent: str, root: str) -> SearchResult:
        return cls(
            path=item.path,
            mode=item.mode,
            type=item.type,
            sha=item.sha,
            parent=parent,
            fullpath=f"{root}/{item.path}",
        )


@dataclass
class _Frame:
    tree_id: str
    depth: int
    prefix: str
    entries: Iterator[GitTreeItem]


def decode_blob(blob: GitBlob) -> bytes:
    """Undo the transport encoding of a blob."""
    encoding = blob.encoding.lower()
    if encoding == "base64":
        try:
            return base64.b64decode(blob.content)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError(f"Blob {blob.sha} is not valid base64") from exc
    if encoding in ("utf-8", "utf8"):
        return blob.content.encode("utf-8")
    raise DecodeError(f"Blob {blob.sha} has unsupported encoding {blob.encoding!r}")


class GitObjectResolver:
    """Git objects of one project. Nothing is cached; every call hits the API."""

    def __init__(self, client: ApiClient, project_id: str) -> None:
        self._client = client
        self._project_id = project_id

    @property
    def project_id(self) -> str:
        return self._project_id

    def _url(self, kind: str, sha: str) -> str:
        return f"/projects/{self._project_id}/git/{kind}/{sha}"

    async def commit(self, sha: str) -> GitCommit:
        return await self._client.get_model(self._url("commits", sha), GitCommit)

    async def tree(self, sha: str) -> GitTree:
        return await self._client.get_model(self._url("trees", sha), GitTree)

    async def blob(self, sha: str) -> GitBlob:
        return await self._client.get_model(self._url("blobs", sha), GitBlob)

    async def blob_content(self, sha: str) -> bytes:
        return decode_blob(await self.blob(sha))

    async def find(self, tree_id: str, predicate: PathPredicate, depth: int, root: str = "") -> list[SearchResult]:
        """Depth-first, pre-order search for blobs whose path segment satisfies *predicate*.

        *depth* counts tree fetches: ``depth=1`` only looks at the entries of
        *tree_id* itself, and ``depth=0`` returns nothing without any request.
        Results come back in encounter order. A failing tree fetch aborts the
        whole search.
        """
        if depth <= 0:
            return []

        results: list[SearchResult] = []
        top = await self.tree(tree_id)
        stack = [_Frame(tree_id, depth, root, iter(top.tree))]
        while stack:
            frame = stack[-1]
            item = next(frame.entries, None)
            if item is None:
                stack.pop()
                continue
            if item.type == "tree":
                if frame.depth > 1:
                    subtree = await self.tree(item.sha)
                    stack.append(_Frame(item.sha, frame.depth - 1, f"{frame.prefix}/{item.path}", iter(subtree.tree)))
            elif item.type == "blob" and predicate(item.path):
                logger.debug("Matched %s/%s in %s", frame.prefix, item.path, self._project_id)
                results.append(SearchResult.from_item(item, parent=frame.tree_id, root=frame.prefix))
        return results

    async def lookup_path(self, tree_id: str, name: str, root: str = "") -> SearchResult | None:
        """Return the last direct entry of *tree_id* named exactly *name*."""
        tree = await self.tree(tree_id)
        result: SearchResult | None = None
        for item in tree.tree:
            if item.path == name:
                result = SearchResult.from_item(item, parent=tree_id, root=root)
        return result

    async def lookup(self, tree_id: str, path: str) -> SearchResult | None:
        """Resolve a fixed slash-separated *path* by chaining single-level lookups."""
        segments = [segment for segment in path.split("/") if segment]
        current = tree_id
        root = ""
        found: SearchResult | None = None
        for index, segment in enumerate(segments):
            found = await self.lookup_path(current, segment, root)
            if found is None:
                return None
            if index < len(segments) - 1:
                if found.type != "tree":
                    return None
                current = found.sha
                root = found.fullpath
        return found
