"""Core models and reconciliation services for IAM policy attachments."""

from .models import MemberSet, NotFound, PolicyAttachment

__all__ = ["MemberSet", "NotFound", "PolicyAttachment"]
