from __future__ import annotations

import logging
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from platform_scan.api.git import GitObjectResolver
from platform_scan.api.pagination import DEFAULT_MAX_PAGES, PaginatedFetcher, resolve_href
from platform_scan.errors import PageFetchError
from platform_scan.models import (
    AccessToken,
    Environment,
    EnvironmentVariable,
    Organization,
    Subscription,
    Variable,
    main_environment,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ApiClient:
    """Bearer-authenticated, read-only access to the platform REST API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_url: str,
        token: AccessToken,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> None:
        self._http = http
        self._api_url = api_url
        self._token = token
        self._pager = PaginatedFetcher(self.get_json, api_url, max_pages=max_pages)

    @property
    def api_url(self) -> str:
        return self._api_url

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def get_json(self, url: str) -> Any:
        endpoint = resolve_href(self._api_url, url)
        logger.debug("GET %s", endpoint)
        try:
            response = await self._http.get(
                endpoint,
                headers={"Authorization": f"Bearer {self._token.access_token}"},
            )
        except httpx.HTTPError as exc:
            raise PageFetchError(endpoint, f"Request failed: {exc}") from exc

        if response.status_code >= 400:
            raise PageFetchError(endpoint, f"HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise PageFetchError(endpoint, "Response is not valid JSON") from exc

    async def get_model(self, url: str, model: type[ModelT]) -> ModelT:
        endpoint = resolve_href(self._api_url, url)
        payload = await self.get_json(endpoint)
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise PageFetchError(endpoint, f"Unexpected {model.__name__} shape") from exc

    async def get_list(self, url: str, model: type[ModelT]) -> list[ModelT]:
        endpoint = resolve_href(self._api_url, url)
        payload = await self.get_json(endpoint)
        try:
            return TypeAdapter(list[model]).validate_python(payload)  # type: ignore[valid-type]
        except ValidationError as exc:
            raise PageFetchError(endpoint, f"Unexpected {model.__name__} list shape") from exc

    # -- collections ---------------------------------------------------------

    async def organizations(self) -> list[Organization]:
        return await self._pager.fetch_all("/organizations", Organization)

    async def subscriptions(self, concurrency: int = 1) -> list[Subscription]:
        """All subscriptions of every organization the token can see.

        With ``concurrency > 1`` the order across organizations is not deterministic.
        """
        organizations = await self.organizations()
        logger.info("Listing subscriptions of %d organization(s)", len(organizations))
        return await self._pager.fetch_nested(
            organizations,
            lambda organization: f"/organizations/{organization.id}/subscriptions",
            Subscription,
            concurrency=concurrency,
        )

    async def environments(self, project_id: str) -> list[Environment]:
        return await self.get_list(f"/projects/{project_id}/environments", Environment)

    async def main_environment(self, project_id: str) -> Environment | None:
        return main_environment(await self.environments(project_id))

    async def variables(self, project_id: str) -> list[Variable]:
        return await self.get_list(f"/projects/{project_id}/variables", Variable)

    async def environment_variables(self, project_id: str, environment: str) -> list[EnvironmentVariable]:
        return await self.get_list(
            f"/projects/{project_id}/environments/{quote(environment, safe='')}/variables",
            EnvironmentVariable,
        )

    # -- git objects ---------------------------------------------------------

    def git(self, project_id: str) -> GitObjectResolver:
        return GitObjectResolver(self, project_id)
