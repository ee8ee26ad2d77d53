"""Repository inventory across the personal account and its organizations."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator

from ReMove.errors import ReMoveError
from ReMove.models import AccountKind, Identity, InventoryResult, RepositoryDescriptor
from ReMove.providers.base import RepoHost

logger = logging.getLogger(__name__)

PageFetcher = Callable[[int, int], list[RepositoryDescriptor]]


def iter_pages(fetch_page: PageFetcher, page_size: int) -> Iterator[RepositoryDescriptor]:
    """Yield items page by page until a page shorter than *page_size* arrives."""
    page = 1
    while True:
        items = fetch_page(page, page_size)
        yield from items
        if len(items) < page_size:
            return
        page += 1


class InventoryAggregator:
    """Collects every repository the authenticated account can move."""

    def __init__(self, provider: RepoHost, page_size: int = 100):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.provider = provider
        self.page_size = page_size

    def list_organizations(self) -> list[Identity]:
        return self.provider.list_organization_memberships()

    def list_all_repositories(self) -> InventoryResult:
        """Owned repositories first, then each organization's in membership order.

        A failure listing personal repositories propagates. Organization
        failures are logged and recorded as warnings; whatever was
        collected before the failure is kept.
        """
        result = InventoryResult()
        result.repositories.extend(
            iter_pages(self.provider.list_owned_repositories, self.page_size)
        )

        try:
            orgs = self.list_organizations()
        except ReMoveError as exc:
            logger.warning("Error fetching organizations: %s", exc)
            result.warnings.append(f"Could not list organizations: {exc}")
            return result

        for org in orgs:
            def fetch(page: int, page_size: int, login: str = org.login):
                return self.provider.list_organization_repositories(login, page, page_size)

            try:
                for repo in iter_pages(fetch, self.page_size):
                    result.repositories.append(repo)
            except ReMoveError as exc:
                logger.warning(
                    "Error fetching repositories for organization %s: %s", org.login, exc
                )
                result.warnings.append(f"{org.login}: {exc}")

        logger.info(
            "Inventory: %d repositories across %d organizations",
            len(result.repositories),
            len(orgs),
        )
        return result


# ---------------------------------------------------------------------------
# Selection filtering
# ---------------------------------------------------------------------------

VISIBILITY_CHOICES = ("all", "public", "private")
OWNER_CHOICES = ("all", "personal", "organization")


def filter_repositories(
    repos: Iterable[RepositoryDescriptor],
    query: str = "",
    visibility: str = "all",
    owner: str = "all",
) -> list[RepositoryDescriptor]:
    """Return repositories matching every given criterion.

    *query* is a case-insensitive substring of the name or description.
    """
    if visibility not in VISIBILITY_CHOICES:
        raise ValueError(f"Unknown visibility filter: {visibility}")
    if owner not in OWNER_CHOICES:
        raise ValueError(f"Unknown owner filter: {owner}")

    needle = query.strip().lower()
    matched: list[RepositoryDescriptor] = []
    for repo in repos:
        if needle and needle not in repo.name.lower() and needle not in (
            repo.description or ""
        ).lower():
            continue
        if visibility == "private" and not repo.is_private:
            continue
        if visibility == "public" and repo.is_private:
            continue
        if owner == "personal" and repo.owner.kind is not AccountKind.PERSONAL:
            continue
        if owner == "organization" and repo.owner.kind is not AccountKind.ORGANIZATION:
            continue
        matched.append(repo)
    return matched


def unique_owners(repos: Iterable[RepositoryDescriptor]) -> list[str]:
    return sorted({repo.owner.login for repo in repos})
