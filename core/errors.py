"""Error taxonomy for policy attachment reconciliation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Optional

from botocore.exceptions import ClientError

if TYPE_CHECKING:  # pragma: no cover
    from core.attachment.diff import MembershipOperation


def error_code(error: BaseException) -> str:
    """Return the AWS error code of ``error`` or its class name."""
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code")
        if code:
            return str(code)
    return error.__class__.__name__


class PolicyAttachmentError(Exception):
    """Base class for IAMPA errors."""


class ValidationError(PolicyAttachmentError, ValueError):
    """Declared configuration or local state is unusable."""


class RemoteCallError(PolicyAttachmentError):
    """A single attach/detach call was rejected by the identity API."""

    def __init__(self, operation: "MembershipOperation", policy_arn: str, error: BaseException) -> None:
        self.operation = operation
        self.policy_arn = policy_arn
        self.error = error
        self.code = error_code(error)
        super().__init__(
            f"{operation.action} {operation.kind[:-1]} {operation.principal!r} ({policy_arn}): {error}"
        )


_VERBS = {
    "attach": "attaching policy with",
    "update": "updating user, role, or group list from",
    "detach": "removing user, role, or group list from",
}


class AggregateError(PolicyAttachmentError):
    """Per-kind failures of one create, update or delete call."""

    def __init__(self, verb: str, name: str, errors: Mapping[str, Optional[RemoteCallError]]) -> None:
        self.verb = verb
        self.name = name
        self.users = errors.get("users")
        self.roles = errors.get("roles")
        self.groups = errors.get("groups")
        description = _VERBS.get(verb, verb)
        super().__init__(
            f"Error {description} IAM Policy Attachment ({name}):\n"
            f" users - {self.users}\n"
            f" roles - {self.roles}\n"
            f" groups - {self.groups}"
        )

    @property
    def errors(self) -> dict[str, RemoteCallError]:
        """Non-empty slots keyed by principal kind."""
        slots = {"users": self.users, "roles": self.roles, "groups": self.groups}
        return {kind: error for kind, error in slots.items() if error is not None}


__all__ = [
    "AggregateError",
    "PolicyAttachmentError",
    "RemoteCallError",
    "ValidationError",
    "error_code",
]
