"""Data classes for ReMove."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class AccountKind(Enum):
    PERSONAL = "User"
    ORGANIZATION = "Organization"

    @classmethod
    def from_api(cls, value: str | None) -> AccountKind:
        if value == cls.ORGANIZATION.value:
            return cls.ORGANIZATION
        return cls.PERSONAL


class WorkflowStep(Enum):
    AUTH = "auth"
    SELECT = "select"
    CONFIGURE = "configure"
    CONFIRM = "confirm"
    TRANSFER = "transfer"


class ValidationStatus(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class Identity:
    login: str
    id: int
    kind: AccountKind = AccountKind.PERSONAL
    display_name: str | None = None
    email: str | None = None

    @property
    def is_organization(self) -> bool:
        return self.kind is AccountKind.ORGANIZATION

    @classmethod
    def from_api(cls, data: dict) -> Identity:
        """Build an identity from a GitHub user or organization payload.

        ``/user/orgs`` entries carry no ``type`` field, so callers listing
        memberships pass ``kind`` explicitly through :meth:`from_api_org`.
        """
        return cls(
            login=data["login"],
            id=int(data["id"]),
            kind=AccountKind.from_api(data.get("type")),
            display_name=data.get("name") or None,
            email=data.get("email") or None,
        )

    @classmethod
    def from_api_org(cls, data: dict) -> Identity:
        return cls(
            login=data["login"],
            id=int(data["id"]),
            kind=AccountKind.ORGANIZATION,
            display_name=data.get("name") or None,
        )

    def to_dict(self) -> dict:
        return {
            "login": self.login,
            "id": self.id,
            "type": self.kind.value,
            "name": self.display_name,
            "email": self.email,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Identity:
        return cls.from_api(data)


@dataclass(frozen=True)
class RepositoryOwner:
    login: str
    kind: AccountKind = AccountKind.PERSONAL


@dataclass(frozen=True)
class RepositoryDescriptor:
    id: int
    name: str
    full_name: str
    owner: RepositoryOwner
    url: str
    updated_at: str = ""
    description: str | None = None
    is_private: bool = False
    star_count: int = 0
    fork_count: int = 0
    primary_language: str | None = None

    @classmethod
    def from_api(cls, data: dict) -> RepositoryDescriptor:
        owner = data.get("owner") or {}
        return cls(
            id=int(data["id"]),
            name=data["name"],
            full_name=data.get("full_name") or f"{owner.get('login', '')}/{data['name']}",
            owner=RepositoryOwner(
                login=owner.get("login", ""),
                kind=AccountKind.from_api(owner.get("type")),
            ),
            url=data.get("html_url", ""),
            updated_at=data.get("updated_at") or "",
            description=data.get("description"),
            is_private=bool(data.get("private", False)),
            star_count=int(data.get("stargazers_count") or 0),
            fork_count=int(data.get("forks_count") or 0),
            primary_language=data.get("language"),
        )


@dataclass(frozen=True)
class TransferOutcome:
    repository: str
    success: bool
    new_url: str | None = None
    error_message: str | None = None

    @classmethod
    def succeeded(cls, repository: str, new_url: str) -> TransferOutcome:
        return cls(repository=repository, success=True, new_url=new_url)

    @classmethod
    def failed(cls, repository: str, error_message: str) -> TransferOutcome:
        return cls(repository=repository, success=False, error_message=error_message)


@dataclass
class DestinationSpec:
    raw_input: str = ""
    is_organization: bool = False
    resolved_identity: Identity | None = None

    @property
    def login(self) -> str | None:
        if self.resolved_identity is None:
            return None
        return self.resolved_identity.login


@dataclass
class InventoryResult:
    repositories: list[RepositoryDescriptor] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TransferSummary:
    total: int
    succeeded: int
    failed: int

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "complete"
        if self.succeeded > 0:
            return "partial"
        return "failed"
