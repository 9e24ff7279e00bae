"""Per-project report pipeline.

For every subscription the main environment's head commit is resolved, the
services file is read from its fixed path, and the tree is searched for app
manifests together with the lock and make files next to them. Each readable
manifest becomes one report row.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field

from platform_scan.api.git import SearchResult
from platform_scan.core.manifests import (
    DRUPAL_FLAVOR,
    PHP_TYPE_PREFIX,
    SERVICES_PATH,
    is_app_manifest,
    is_composer_lock,
    is_make_file,
    is_scanned_file,
    make_file_versions,
    parse_app_manifest,
    parse_composer_lock,
    parse_services,
    split_service_type,
)
from platform_scan.core.ports.platform import GitObjects, PlatformApi
from platform_scan.errors import DecodeError, PageFetchError
from platform_scan.models import PlatformApp, Report, Subscription, main_environment
from platform_scan.tasks import cancel_all

logger = logging.getLogger(__name__)

MANIFEST_SEARCH_DEPTH = 2


@dataclass
class SubscriptionScan:
    """What one subscription contributed: its rows and its share of the diagnostics."""

    rows: list[Report] = field(default_factory=list)
    unreadable: list[str] = field(default_factory=list)
    engines: list[str] = field(default_factory=list)


@dataclass
class ScanResult:
    rows: list[Report] = field(default_factory=list)
    unreadable: dict[str, list[str]] = field(default_factory=dict)
    engine_usage: Counter[str] = field(default_factory=Counter)

    def merge(self, project_id: str, scan: SubscriptionScan) -> None:
        self.rows.extend(scan.rows)
        if scan.unreadable:
            self.unreadable.setdefault(project_id, []).extend(scan.unreadable)
        self.engine_usage.update(scan.engines)


def merge_locked_versions(versions: dict[str, str], packages: list[tuple[str, str]], aliases: Mapping[str, str]) -> None:
    """Fold ``(name, version)`` pairs into *versions* under their canonical name, last write wins."""
    for name, version in packages:
        canonical = aliases.get(name)
        if canonical is not None:
            versions[canonical] = version


class ReportAggregator:
    def __init__(
        self,
        api: PlatformApi,
        aliases: Mapping[str, str],
        search_depth: int = MANIFEST_SEARCH_DEPTH,
    ) -> None:
        self._api = api
        self._aliases = aliases
        self._search_depth = search_depth

    async def run(self, project_ids: Collection[str] = (), concurrency: int = 1) -> ScanResult:
        subscriptions = await self._api.subscriptions(concurrency=concurrency)
        if project_ids:
            subscriptions = [s for s in subscriptions if s.project_id in project_ids]
        logger.info("Scanning %d subscription(s)", len(subscriptions))

        result = ScanResult()
        if concurrency <= 1:
            for subscription in subscriptions:
                result.merge(subscription.project_id, await self.scan_subscription(subscription))
            return result

        semaphore = asyncio.Semaphore(concurrency)

        async def _scan(subscription: Subscription) -> SubscriptionScan:
            async with semaphore:
                return await self.scan_subscription(subscription)

        tasks = [asyncio.ensure_future(_scan(subscription)) for subscription in subscriptions]
        try:
            scans = await asyncio.gather(*tasks)
        except BaseException:
            await cancel_all(tasks)
            raise
        for subscription, scan in zip(subscriptions, scans):
            result.merge(subscription.project_id, scan)
        return result

    async def scan_subscription(self, subscription: Subscription) -> SubscriptionScan:
        scan = SubscriptionScan()
        project_id = subscription.project_id
        logger.info(
            "Subscription %s %r (plan %s, storage %s)",
            project_id,
            subscription.project_title,
            subscription.plan,
            subscription.storage,
        )

        try:
            environments = await self._api.environments(project_id)
        except PageFetchError as exc:
            logger.warning("Cannot list environments of %s: %s", project_id, exc)
            scan.rows.append(Report.for_subscription(subscription))
            return scan

        environment = main_environment(environments)
        if environment is None:
            logger.warning("%s has no main environment", project_id)
            scan.rows.append(Report.for_subscription(subscription))
            return scan

        logger.info("Main environment %s", environment.name)
        if environment.head_commit is None:
            logger.warning("%s: no head commit on %s", project_id, environment.name)
            scan.rows.append(Report.for_subscription(subscription, last_backup_at=environment.last_backup_at))
            return scan

        git = self._api.git(project_id)
        commit = await git.commit(environment.head_commit)
        services = await self._service_versions(git, commit.tree)
        scan.engines = sorted(services)

        matches = await git.find(commit.tree, is_scanned_file, self._search_depth)
        manifests = [item for item in matches if is_app_manifest(item.path)]
        if not manifests:
            logger.warning("%s: no app manifest within %d level(s)", project_id, self._search_depth)

        for manifest in manifests:
            try:
                app = parse_app_manifest(await git.blob_content(manifest.sha))
            except DecodeError as exc:
                logger.error("Unreadable app manifest %s in %s: %s", manifest.fullpath, project_id, exc)
                scan.unreadable.append(manifest.fullpath)
                continue

            logger.info("App %s (%s) at %s", app.name, app.type, manifest.fullpath)
            packages = await self._package_versions(git, manifest, app, matches)
            scan.rows.append(
                Report.for_subscription(
                    subscription,
                    last_backup_at=environment.last_backup_at,
                    app_type=app.type,
                    app=app.name,
                    packages=packages,
                    services=dict(services),
                )
            )
        return scan

    async def _service_versions(self, git: GitObjects, tree: str) -> dict[str, str]:
        found = await git.lookup(tree, SERVICES_PATH)
        if found is None:
            return {}
        try:
            definitions = parse_services(await git.blob_content(found.sha))
        except DecodeError as exc:
            logger.warning("Ignoring %s in %s: %s", SERVICES_PATH, git.project_id, exc)
            return {}

        versions: dict[str, str] = {}
        for name, service in definitions.items():
            split = split_service_type(service.type)
            if split is None:
                logger.debug("Service %s has no version in %r", name, service.type)
                continue
            engine, version = split
            logger.info("Service %s: %s %s", name, engine, version)
            versions[engine] = version
        return versions

    async def _package_versions(
        self,
        git: GitObjects,
        manifest: SearchResult,
        app: PlatformApp,
        matches: list[SearchResult],
    ) -> dict[str, str]:
        versions: dict[str, str] = {}
        if not app.type.startswith(PHP_TYPE_PREFIX):
            return versions

        siblings = [item for item in matches if item.parent == manifest.parent]
        for lock in (item for item in siblings if is_composer_lock(item.path)):
            try:
                composer = parse_composer_lock(await git.blob_content(lock.sha))
            except DecodeError as exc:
                logger.warning("Ignoring %s: %s", lock.fullpath, exc)
                continue
            merge_locked_versions(
                versions,
                [(package.name, package.version) for package in composer.packages],
                self._aliases,
            )

        if (app.build or {}).get("flavor") != DRUPAL_FLAVOR:
            return versions

        for make in (item for item in siblings if is_make_file(item.path)):
            try:
                found = make_file_versions(await git.blob_content(make.sha))
            except DecodeError as exc:
                logger.warning("Ignoring %s: %s", make.fullpath, exc)
                continue
            for version in found:
                versions[DRUPAL_FLAVOR] = version
        return versions
