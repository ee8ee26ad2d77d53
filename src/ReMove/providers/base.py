"""Abstract base class for repository hosts."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ReMove.models import Identity, RepositoryDescriptor


class RepoHost(ABC):
    """Capabilities a Git hosting service must offer to move repositories."""

    @abstractmethod
    def get_authenticated_identity(self) -> Identity:
        """Return the account the current token belongs to."""

    @abstractmethod
    def list_owned_repositories(
        self, page: int, page_size: int
    ) -> list[RepositoryDescriptor]:
        """Return one page of repositories owned by the authenticated account."""

    @abstractmethod
    def list_organization_memberships(self) -> list[Identity]:
        """Return the organizations the authenticated account belongs to."""

    @abstractmethod
    def list_organization_repositories(
        self, org_login: str, page: int, page_size: int
    ) -> list[RepositoryDescriptor]:
        """Return one page of repositories owned by an organization."""

    @abstractmethod
    def lookup_account_by_name(self, name: str) -> Identity:
        """Resolve an account name. Raises NotFoundError if it does not exist."""

    @abstractmethod
    def transfer_repository(
        self, owner_login: str, repo_name: str, new_owner_login: str
    ) -> None:
        """Request an ownership transfer. Raises on rejection."""

    @abstractmethod
    def check_rate_limit(self) -> dict:
        """Cheap authenticated probe. Raises if the token is not usable."""

    @abstractmethod
    def web_url(self, owner_login: str, repo_name: str) -> str:
        """Return the browser URL of a repository."""
