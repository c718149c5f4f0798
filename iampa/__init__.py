"""Public entry points for IAM policy attachment reconciliation."""

from core.attachment import PolicyAttachmentReconciler, ReconcilableResource, plan_changes
from core.errors import AggregateError, RemoteCallError, ValidationError
from core.models import MemberSet, NotFound, PolicyAttachment

__all__ = [
    "AggregateError",
    "MemberSet",
    "NotFound",
    "PolicyAttachment",
    "PolicyAttachmentReconciler",
    "ReconcilableResource",
    "RemoteCallError",
    "ValidationError",
    "plan_changes",
]

__version__ = "0.1.0"
