"""Tests for API payload models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from platform_scan.api.client import ApiClient
from platform_scan.models import Environment, Organization, Page, Report, Subscription, main_environment
from tests.conftest import FakePlatform, environment


def test_page_reads_hal_links() -> None:
    page = Page[Organization].model_validate(
        {"count": 1, "items": [{"id": "o1", "name": "acme"}], "_links": {"next": {"href": "/organizations?page=2"}}}
    )
    assert page.items[0].id == "o1"
    assert page.links["next"].href == "/organizations?page=2"


def test_page_without_links_has_no_next() -> None:
    page = Page[Organization].model_validate({"items": []})
    assert "next" not in page.links


def test_environment_parses_timestamps_and_ignores_unknown_fields() -> None:
    env = Environment.model_validate(
        {
            "name": "main",
            "is_main": True,
            "head_commit": "abc123",
            "last_backup_at": "2024-03-01T02:00:00+00:00",
            "deployment_target": "local",
        }
    )
    assert env.last_backup_at == datetime(2024, 3, 1, 2, 0, tzinfo=timezone.utc)
    assert env.head_commit == "abc123"


def test_report_for_subscription_copies_project_fields() -> None:
    sub = Subscription(id="1", project_id="p1", project_title="Shop", plan="medium", storage=10240)

    report = Report.for_subscription(sub, app="web")

    assert (report.subscription, report.title, report.plan, report.storage) == ("p1", "Shop", "medium", 10240)
    assert report.region == ""
    assert report.app == "web"


def test_main_environment_is_first_flagged_environment() -> None:
    environments = [
        Environment(name="develop"),
        Environment(name="main", is_main=True),
        Environment(name="legacy-main", is_main=True),
    ]
    found = main_environment(environments)
    assert found is not None
    assert found.name == "main"


def test_main_environment_missing() -> None:
    assert main_environment([Environment(name="develop"), Environment(name="staging")]) is None
    assert main_environment([]) is None


@pytest.mark.asyncio
async def test_client_main_environment(fake_platform: FakePlatform, api_client: ApiClient) -> None:
    fake_platform.add_environments("p1", [environment("develop", is_main=False), environment("main")])
    fake_platform.add_environments("p2", [environment("develop", is_main=False)])

    found = await api_client.main_environment("p1")

    assert found is not None
    assert found.name == "main"
    assert await api_client.main_environment("p2") is None
