"""Classify declared attachments against recorded state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from core.attachment.diff import MembershipDiff, flatten, plan_create, plan_delete, plan_update
from core.models import PolicyAttachment

CREATE = "create"
UPDATE = "update"
REPLACE = "replace"
DELETE = "delete"
NOOP = "noop"


@dataclass(slots=True)
class PlannedChange:
    action: str
    name: str
    declared: Optional[PolicyAttachment] = None
    prior: Optional[PolicyAttachment] = None
    diffs: list[MembershipDiff] = field(default_factory=list)

    def as_json(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "action": self.action,
            "policyArn": (self.declared or self.prior).policy_arn,  # type: ignore[union-attr]
            "operations": [operation.describe() for operation in flatten(self.diffs)],
        }


def plan_changes(
    declared: Iterable[PolicyAttachment],
    state: Mapping[str, PolicyAttachment],
) -> list[PlannedChange]:
    """Return one change per attachment name, ordered by name."""
    wanted = {attachment.name: attachment for attachment in declared}
    changes: list[PlannedChange] = []

    for name in sorted(set(wanted) | set(state)):
        target = wanted.get(name)
        current = state.get(name)
        if current is None:
            changes.append(PlannedChange(CREATE, name, declared=target, diffs=plan_create(target.members)))
        elif target is None:
            changes.append(PlannedChange(DELETE, name, prior=current, diffs=plan_delete(current.members)))
        elif target.policy_arn != current.policy_arn:
            # name and ARN are immutable: detach everything, then attach to the new ARN
            diffs = plan_delete(current.members) + plan_create(target.members)
            changes.append(PlannedChange(REPLACE, name, declared=target, prior=current, diffs=diffs))
        else:
            diffs = plan_update(current.members, target.members)
            action = UPDATE if diffs else NOOP
            changes.append(PlannedChange(action, name, declared=target, prior=current, diffs=diffs))
    return changes


__all__ = ["CREATE", "DELETE", "NOOP", "REPLACE", "UPDATE", "PlannedChange", "plan_changes"]
