"""Data models shared across the reconciler and its host."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field, field_serializer

from core.constants import PRINCIPAL_KINDS


class MemberSet(BaseModel):
    """Principal names a policy is (or should be) attached to."""

    users: set[str] = Field(default_factory=set, description="IAM user names")
    roles: set[str] = Field(default_factory=set, description="IAM role names")
    groups: set[str] = Field(default_factory=set, description="IAM group names")

    @field_serializer("users", "roles", "groups")
    def serialize_names(self, value: set[str]) -> list[str]:
        return sorted(value)

    def count(self) -> int:
        return len(self.users) + len(self.roles) + len(self.groups)

    def of(self, kind: str) -> set[str]:
        if kind not in PRINCIPAL_KINDS:
            raise KeyError(kind)
        return getattr(self, kind)

    def is_empty(self) -> bool:
        return not (self.users or self.roles or self.groups)

    @classmethod
    def from_lists(
        cls,
        users: Iterable[str] | None = None,
        roles: Iterable[str] | None = None,
        groups: Iterable[str] | None = None,
    ) -> "MemberSet":
        return cls(users=set(users or []), roles=set(roles or []), groups=set(groups or []))


class PolicyAttachment(BaseModel):
    """A managed policy attached to collections of users, roles and groups."""

    name: str = Field(..., min_length=1, frozen=True, description="Attachment name, immutable")
    policy_arn: str = Field(..., min_length=1, frozen=True, description="ARN of the managed policy")
    members: MemberSet = Field(default_factory=MemberSet)
    id: Optional[str] = Field(default=None, description="Local identity, set once created")

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "PolicyAttachment":
        """Build an attachment from a flat declaration entry."""
        members = data.get("members")
        if members is None:
            members = {kind: data.get(kind) or [] for kind in PRINCIPAL_KINDS}
        return cls.model_validate(
            {
                "name": data.get("name"),
                "policy_arn": data.get("policy_arn"),
                "members": members,
                "id": data.get("id"),
            }
        )


@dataclass(frozen=True, slots=True)
class NotFound:
    """Read outcome when the tracked policy no longer exists remotely."""

    policy_arn: str


__all__ = ["MemberSet", "NotFound", "PolicyAttachment"]
