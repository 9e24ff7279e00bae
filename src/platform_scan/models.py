from collections.abc import Iterable
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

ItemT = TypeVar("ItemT", bound=BaseModel)


class AccessToken(BaseModel):
    access_token: str
    expires_in: int
    token_type: str


class HalLink(BaseModel):
    href: str
    title: str | None = None
    method: str | None = None


class Page(BaseModel, Generic[ItemT]):
    """One page of a HAL collection: its items plus the ``_links`` relation map."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[ItemT]
    links: dict[str, HalLink] = Field(default_factory=dict, alias="_links")
    count: int | None = None


class Organization(BaseModel):
    id: str
    name: str = ""
    label: str = ""
    owner_id: str | None = None
    namespace: str | None = None
    country: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Subscription(BaseModel):
    id: str
    project_id: str
    project_title: str = ""
    plan: str = ""
    storage: int = 0
    project_region: str | None = None
    project_region_label: str | None = None
    status: str | None = None
    environments: int | None = None
    project_ui: str | None = None


class Environment(BaseModel):
    name: str
    title: str = ""
    machine_name: str | None = None
    type: str | None = None
    status: str | None = None
    parent: str | None = None
    is_main: bool = False
    is_dirty: bool = False
    has_code: bool = False
    has_deployment: bool = False
    head_commit: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_backup_at: datetime | None = None
    last_active_at: datetime | None = None


class GitCommit(BaseModel):
    id: str
    sha: str
    tree: str


class GitTreeItem(BaseModel):
    path: str
    mode: str
    type: str
    sha: str


class GitTree(BaseModel):
    id: str
    tree: list[GitTreeItem]


class GitBlob(BaseModel):
    sha: str
    size: int
    encoding: str
    content: str


class PlatformApp(BaseModel):
    """An application manifest (``.platform.app.yaml``)."""

    name: str
    type: str
    build: dict[str, Any] | None = None
    hooks: dict[str, Any] | None = None
    crons: dict[str, Any] | None = None


class PlatformService(BaseModel):
    """One entry of ``.platform/services.yaml``."""

    type: str
    disk: int | None = None
    size: str | None = None
    relationships: dict[str, Any] | None = None


class ComposerLockPackage(BaseModel):
    name: str
    version: str
    type: str | None = None


class ComposerLock(BaseModel):
    packages: list[ComposerLockPackage] = Field(default_factory=list)


class Variable(BaseModel):
    name: str
    value: str | None = None
    is_json: bool = False
    is_sensitive: bool = False
    visible_build: bool = True
    visible_runtime: bool = True


class EnvironmentVariable(Variable):
    project: str = ""
    environment: str = ""
    inherited: bool = False
    is_enabled: bool = True
    is_inheritable: bool = True


class Report(BaseModel):
    """One output row: a subscription, its main environment and one app found in it."""

    subscription: str
    title: str
    plan: str
    storage: int
    region: str = ""
    last_backup_at: datetime | None = None
    app_type: str = ""
    app: str = ""
    packages: dict[str, str] = Field(default_factory=dict)
    services: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def for_subscription(cls, subscription: Subscription, **fields: Any) -> "Report":
        return cls(
            subscription=subscription.project_id,
            title=subscription.project_title,
            plan=subscription.plan,
            storage=subscription.storage,
            region=subscription.project_region or "",
            **fields,
        )


def main_environment(environments: Iterable[Environment]) -> Environment | None:
    """The first environment flagged ``is_main``, or ``None``."""
    return next((environment for environment in environments if environment.is_main), None)
