"""Shared fixtures and helpers for tests."""

from __future__ import annotations

import base64
import json
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio

from platform_scan.api.client import ApiClient
from platform_scan.models import AccessToken

_REPO_ROOT = Path(__file__).parent.parent

API_URL = "https://api.example.test"
AUTH_URL = "https://auth.example.test/oauth2/token"
ACCESS_TOKEN = AccessToken(access_token="bearer-xyz", expires_in=900, token_type="bearer")


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# FakePlatform: in-memory platform API served through httpx.MockTransport
# ---------------------------------------------------------------------------


def organization(org_id: str, name: str | None = None) -> dict[str, Any]:
    return {"id": org_id, "name": name or org_id, "label": (name or org_id).title()}


def subscription(
    project_id: str,
    title: str | None = None,
    plan: str = "development",
    storage: int = 5120,
    region: str | None = "eu-3.platform.sh",
) -> dict[str, Any]:
    return {
        "id": f"sub-{project_id}",
        "project_id": project_id,
        "project_title": title or project_id.title(),
        "plan": plan,
        "storage": storage,
        "project_region": region,
        "status": "active",
    }


def environment(
    name: str = "main",
    is_main: bool = True,
    head_commit: str | None = "c0ffee",
    last_backup_at: str | None = "2024-03-01T02:00:00+00:00",
) -> dict[str, Any]:
    return {
        "name": name,
        "title": name.title(),
        "is_main": is_main,
        "head_commit": head_commit,
        "last_backup_at": last_backup_at,
    }


class FakePlatform:
    """Serves registered JSON payloads by URL and records every request."""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, Any]] = {}
        self.requests: list[httpx.Request] = []
        self.auth_status = 200
        self.token_payload: Any = ACCESS_TOKEN.model_dump()

    # -- registration -------------------------------------------------------

    def add(self, path: str, payload: Any, status: int = 200) -> None:
        url = path if path.startswith("http") else API_URL + path
        self.routes[url] = (status, payload)

    def add_pages(self, path: str, pages: list[list[dict[str, Any]]]) -> None:
        """Register a collection as consecutive pages linked by relative ``next`` hrefs."""
        for index, items in enumerate(pages):
            url = path if index == 0 else f"{path}?page={index + 1}"
            links: dict[str, Any] = {"self": {"href": url}}
            if index < len(pages) - 1:
                links["next"] = {"href": f"{path}?page={index + 2}"}
            self.add(url, {"count": len(items), "items": items, "_links": links})

    def add_environments(self, project_id: str, environments: list[dict[str, Any]]) -> None:
        self.add(f"/projects/{project_id}/environments", environments)

    def add_commit(self, project_id: str, sha: str, tree: str) -> None:
        self.add(f"/projects/{project_id}/git/commits/{sha}", {"id": sha, "sha": sha, "tree": tree})

    def add_tree(self, project_id: str, sha: str, entries: list[tuple[str, str, str]]) -> None:
        """*entries* are ``(path, type, sha)`` triples in API order."""
        items = [
            {"path": path, "mode": "040000" if kind == "tree" else "100644", "type": kind, "sha": entry_sha}
            for path, kind, entry_sha in entries
        ]
        self.add(f"/projects/{project_id}/git/trees/{sha}", {"id": sha, "tree": items})

    def add_blob(self, project_id: str, sha: str, content: str | bytes) -> None:
        raw = content.encode("utf-8") if isinstance(content, str) else content
        self.add(
            f"/projects/{project_id}/git/blobs/{sha}",
            {"sha": sha, "size": len(raw), "encoding": "base64", "content": base64.b64encode(raw).decode()},
        )

    # -- inspection ---------------------------------------------------------

    def requested_urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]

    def git_fetches(self, kind: str) -> list[str]:
        marker = f"/git/{kind}/"
        return [url.rsplit("/", 1)[1] for url in self.requested_urls() if marker in url]

    # -- transport ----------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if request.method == "POST" and url == AUTH_URL:
            return httpx.Response(self.auth_status, json=self.token_payload)
        if request.method != "GET" or url not in self.routes:
            return httpx.Response(404, json={"detail": "not found"})
        status, payload = self.routes[url]
        if isinstance(payload, bytes):
            return httpx.Response(status, content=payload)
        return httpx.Response(status, content=json.dumps(payload).encode())

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> ApiClient:
        return ApiClient(httpx.AsyncClient(transport=self.transport()), API_URL, ACCESS_TOKEN)


@pytest.fixture
def fake_platform() -> FakePlatform:
    return FakePlatform()


@pytest_asyncio.fixture
async def api_client(fake_platform: FakePlatform) -> AsyncIterator[ApiClient]:
    client = fake_platform.client()
    yield client
    await client.aclose()
