"""Pydantic models for the tenant graph and API credentials."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator

from shared.errors import AuthorizationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    COACH = "coach"
    CLIENT = "client"
    ADMIN = "admin"


class Scope(str, Enum):
    READ = "read"
    WRITE = "write"
    ADMIN = "admin"


##########################################
############### IDENTITIES ###############
##########################################

class Coach(BaseModel):
    """A coach employed by a coaching company."""

    role: Literal["coach"] = "coach"
    id: str
    name: str
    company_id: str
    email: str | None = None


class Client(BaseModel):
    """A coaching client. Belongs to exactly one client organisation."""

    role: Literal["client"] = "client"
    id: str
    name: str
    organization_id: str
    email: str | None = None


class Admin(BaseModel):
    """An administrator of a coaching company."""

    role: Literal["admin"] = "admin"
    id: str
    name: str
    company_id: str
    email: str | None = None


Identity = Annotated[Union[Coach, Client, Admin], Field(discriminator="role")]


class ClientOrganization(BaseModel):
    """The organisation a client works for, optionally tied to a coaching company."""

    id: str
    name: str
    company_id: str | None = None


class Assignment(BaseModel):
    """Grants a coach access to a client's data. Managed by admins only."""

    coach_id: str
    client_id: str
    created_at: datetime = Field(default_factory=_utcnow)
    created_by: str | None = None


##########################################
############### CREDENTIALS ##############
##########################################

class Credential(BaseModel):
    """A stored API key: bcrypt hash plus a short plaintext prefix for lookup.

    Exactly one of coach_id / client_id / admin_id is set.
    """

    id: str
    name: str | None = None
    key_prefix: str
    key_hash: str
    coach_id: str | None = None
    client_id: str | None = None
    admin_id: str | None = None
    scopes: list[Scope] = Field(default_factory=lambda: [Scope.READ])
    revoked: bool = False
    expires_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    last_used_at: datetime | None = None

    @model_validator(mode="after")
    def _single_owner(self) -> "Credential":
        owners = [o for o in (self.coach_id, self.client_id, self.admin_id) if o is not None]
        if len(owners) != 1:
            raise ValueError("Exactly one of coach_id, client_id or admin_id must be set.")
        return self

    def owner(self) -> tuple[Role, str]:
        """Return the (role, id) pair this credential belongs to."""
        if self.coach_id is not None:
            return Role.COACH, self.coach_id
        if self.client_id is not None:
            return Role.CLIENT, self.client_id
        return Role.ADMIN, self.admin_id

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or _utcnow()
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now


class Principal(BaseModel):
    """A verified caller: the resolved identity plus the credential's scopes."""

    identity: Identity
    scopes: frozenset[Scope]
    credential_id: str | None = None

    @property
    def role(self) -> Role:
        return Role(self.identity.role)

    def has_scope(self, scope: Scope) -> bool:
        # the admin scope implies every other scope
        return scope in self.scopes or Scope.ADMIN in self.scopes

    def require_scope(self, scope: Scope) -> None:
        """Raise AuthorizationError if the credential lacks the given scope."""
        if not self.has_scope(scope):
            raise AuthorizationError(f"Missing required scope: {scope.value}")


class IssuedCredential(BaseModel):
    """A freshly issued credential. The plaintext token is only ever returned here."""

    token: str
    credential: Credential
