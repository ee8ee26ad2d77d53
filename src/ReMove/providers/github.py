"""GitHub REST API provider."""

from __future__ import annotations

import logging

import requests

from ReMove.errors import (
    AuthenticationFailed,
    NotFoundError,
    RateLimitError,
    TransportError,
)
from ReMove.models import Identity, RepositoryDescriptor
from ReMove.providers.base import RepoHost

logger = logging.getLogger(__name__)


class GitHubProvider(RepoHost):
    """Provider for GitHub.com and GitHub Enterprise using the REST API."""

    def __init__(
        self,
        token: str | None = None,
        api_host: str = "github.com",
        timeout: float = 30,
    ):
        self.api_host = api_host
        self.timeout = timeout
        if api_host == "github.com":
            self.api_base = "https://api.github.com"
            self.web_base = "https://github.com"
        else:
            self.api_base = f"https://{api_host}/api/v3"
            self.web_base = f"https://{api_host}"

        self.session = requests.Session()
        self.session.headers["Accept"] = "application/vnd.github+json"
        self.session.headers["User-Agent"] = "ReMove/1.0"
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _check_rate_limit(self, response: requests.Response) -> None:
        remaining = _int_header(response, "X-RateLimit-Remaining")
        if remaining == 0:
            raise RateLimitError(_int_header(response, "X-RateLimit-Reset") or 0)

    def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: dict | None = None,
    ) -> requests.Response:
        url = f"{self.api_base}{path}"
        logger.debug("%s %s", method, path)
        try:
            resp = self.session.request(
                method, url, params=params, json=json, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise TransportError(f"Could not reach {self.api_host}: {exc}") from exc

        if resp.status_code == 401:
            raise AuthenticationFailed("Authentication failed. Check your GitHub token.")
        if resp.status_code in (403, 429):
            self._check_rate_limit(resp)
            raise TransportError(
                _api_message(resp)
                or "Access denied. The token may lack permissions, or rate limit exceeded.",
                status_code=resp.status_code,
            )
        if resp.status_code == 404:
            raise NotFoundError(_api_message(resp) or "Not Found")
        if resp.status_code == 422:
            raise TransportError(
                _api_message(resp) or "Request rejected by GitHub.", status_code=422
            )
        if resp.status_code >= 400:
            raise TransportError(
                f"GitHub returned HTTP {resp.status_code}: {_api_message(resp)}".rstrip(": "),
                status_code=resp.status_code,
            )
        return resp

    def _api_get(self, path: str, params: dict | None = None):
        resp = self._request("GET", path, params=params)
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(
                f"Unexpected non-JSON response from {self.api_host}{path}",
                status_code=resp.status_code,
            ) from exc

    def get_authenticated_identity(self) -> Identity:
        return Identity.from_api(self._api_get("/user"))

    def list_owned_repositories(
        self, page: int, page_size: int
    ) -> list[RepositoryDescriptor]:
        data = self._api_get(
            "/user/repos",
            params={
                "type": "owner",
                "sort": "updated",
                "direction": "desc",
                "per_page": page_size,
                "page": page,
            },
        )
        return [RepositoryDescriptor.from_api(item) for item in data]

    def list_organization_memberships(self) -> list[Identity]:
        data = self._api_get("/user/orgs", params={"per_page": 100})
        return [Identity.from_api_org(item) for item in data]

    def list_organization_repositories(
        self, org_login: str, page: int, page_size: int
    ) -> list[RepositoryDescriptor]:
        data = self._api_get(
            f"/orgs/{org_login}/repos",
            params={
                "type": "all",
                "sort": "updated",
                "direction": "desc",
                "per_page": page_size,
                "page": page,
            },
        )
        return [RepositoryDescriptor.from_api(item) for item in data]

    def lookup_account_by_name(self, name: str) -> Identity:
        return Identity.from_api(self._api_get(f"/users/{name}"))

    def transfer_repository(
        self, owner_login: str, repo_name: str, new_owner_login: str
    ) -> None:
        self._request(
            "POST",
            f"/repos/{owner_login}/{repo_name}/transfer",
            json={"new_owner": new_owner_login},
        )

    def check_rate_limit(self) -> dict:
        # Reading the limit does not count against it.
        return self._api_get("/rate_limit")

    def web_url(self, owner_login: str, repo_name: str) -> str:
        return f"{self.web_base}/{owner_login}/{repo_name}"


def _int_header(response: requests.Response, name: str) -> int | None:
    value = response.headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.debug("Ignoring malformed %s header: %r", name, value)
        return None


def _api_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return ""
    if not isinstance(data, dict):
        return ""
    message = data.get("message") or ""
    errors = data.get("errors") or []
    details = [e.get("message") for e in errors if isinstance(e, dict) and e.get("message")]
    if details:
        message = f"{message}: {'; '.join(details)}" if message else "; ".join(details)
    return message
