"""Policy attachment reconciliation."""

from .base import ReconcilableResource
from .diff import MembershipDiff, MembershipOperation, diff_members, plan_create, plan_delete, plan_update
from .planner import PlannedChange, plan_changes
from .reconciler import PolicyAttachmentReconciler

__all__ = [
    "MembershipDiff",
    "MembershipOperation",
    "PlannedChange",
    "PolicyAttachmentReconciler",
    "ReconcilableResource",
    "diff_members",
    "plan_changes",
    "plan_create",
    "plan_delete",
    "plan_update",
]
