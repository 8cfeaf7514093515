"""Access scope models: the single read predicate used by every code path.

An AccessScope is a list of grants compiled once per identity by the
AccessPolicy. The same grants answer the single-item check (admits) and
produce the owner pre-filter handed to the content store (owner_scope), so
"get by id" and "search" can never disagree.
"""

from typing import Any, Literal

from pydantic import BaseModel

from shared.models.content import VisibilityLevel

OwnerField = Literal["owner_coach_id", "owner_client_id", "organization_id"]

ALL_VISIBILITY_LEVELS: frozenset[VisibilityLevel] = frozenset(VisibilityLevel)


class AccessGrant(BaseModel):
    """Readable: records whose owner_field value is in ids and whose visibility is allowed."""

    owner_field: OwnerField
    ids: frozenset[str]
    visibility_levels: frozenset[VisibilityLevel] = ALL_VISIBILITY_LEVELS

    def admits(self, record: Any) -> bool:
        value = getattr(record, self.owner_field, None)
        return value is not None and value in self.ids and record.visibility_level in self.visibility_levels


class OwnerScope(BaseModel):
    """Owner ids a caller could possibly read. Used to narrow candidate sets."""

    coach_ids: frozenset[str] = frozenset()
    client_ids: frozenset[str] = frozenset()
    organization_ids: frozenset[str] = frozenset()

    def is_empty(self) -> bool:
        return not (self.coach_ids or self.client_ids or self.organization_ids)

    def touches(self, record: Any) -> bool:
        """True if any owner field of the record falls inside the scope."""
        return (
            (record.owner_coach_id is not None and record.owner_coach_id in self.coach_ids)
            or (record.owner_client_id is not None and record.owner_client_id in self.client_ids)
            or (record.organization_id is not None and record.organization_id in self.organization_ids)
        )


class AccessScope(BaseModel):
    """Compiled read rules for one identity."""

    grants: list[AccessGrant] = []

    def admits(self, record: Any) -> bool:
        """Evaluate the read predicate against a ContentItem or ChunkMetadata."""
        return any(grant.admits(record) for grant in self.grants)

    @property
    def owner_scope(self) -> OwnerScope:
        ids: dict[str, set[str]] = {"owner_coach_id": set(), "owner_client_id": set(), "organization_id": set()}
        for grant in self.grants:
            ids[grant.owner_field].update(grant.ids)
        return OwnerScope(
            coach_ids=frozenset(ids["owner_coach_id"]),
            client_ids=frozenset(ids["owner_client_id"]),
            organization_ids=frozenset(ids["organization_id"]),
        )
