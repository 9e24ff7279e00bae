"""Parsers for the files a scan reads out of a project's repository."""

from __future__ import annotations

import json
import re
from typing import Any

import yaml
from pydantic import TypeAdapter, ValidationError

from platform_scan.errors import DecodeError
from platform_scan.models import ComposerLock, PlatformApp, PlatformService

APP_MANIFEST = ".platform.app.yaml"
COMPOSER_LOCK = "composer.lock"
MAKE_SUFFIX = ".make"
SERVICES_PATH = ".platform/services.yaml"

PHP_TYPE_PREFIX = "php:"
DRUPAL_FLAVOR = "drupal"
DRUPAL_MAKE_VERSION = re.compile(r"projects\[drupal\]\[version\]\s*=\s*([0-9.]+)")

_SERVICES_ADAPTER = TypeAdapter(dict[str, PlatformService])


def is_app_manifest(path: str) -> bool:
    return path == APP_MANIFEST


def is_composer_lock(path: str) -> bool:
    return path == COMPOSER_LOCK


def is_make_file(path: str) -> bool:
    return path.endswith(MAKE_SUFFIX)


def is_scanned_file(path: str) -> bool:
    return is_app_manifest(path) or is_composer_lock(path) or is_make_file(path)


def _load_yaml(content: bytes, what: str) -> Any:
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise DecodeError(f"Unreadable {what}: {exc}") from exc


def parse_app_manifest(content: bytes) -> PlatformApp:
    data = _load_yaml(content, "app manifest")
    try:
        return PlatformApp.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"Invalid app manifest: {exc.error_count()} error(s)") from exc


def parse_services(content: bytes) -> dict[str, PlatformService]:
    data = _load_yaml(content, "services file")
    try:
        return _SERVICES_ADAPTER.validate_python(data or {})
    except ValidationError as exc:
        raise DecodeError(f"Invalid services file: {exc.error_count()} error(s)") from exc


def parse_composer_lock(content: bytes) -> ComposerLock:
    try:
        data = json.loads(content)
    except ValueError as exc:
        raise DecodeError(f"Unreadable composer.lock: {exc}") from exc
    try:
        return ComposerLock.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"Invalid composer.lock: {exc.error_count()} error(s)") from exc


def split_service_type(service_type: str) -> tuple[str, str] | None:
    """Split ``"mariadb:10.6"`` into engine and version at the first colon."""
    engine, sep, version = service_type.partition(":")
    if not sep:
        return None
    return engine, version


def make_file_versions(content: bytes) -> list[str]:
    """Every drupal core version directive in a drush make file, in file order."""
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError("Make file is not valid UTF-8") from exc
    versions: list[str] = []
    for line in text.splitlines():
        versions.extend(match.group(1) for match in DRUPAL_MAKE_VERSION.finditer(line))
    return versions
