"""Apply policy attachment changes through an IAM client."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from core.attachment.base import ReadResult
from core.attachment.diff import MembershipDiff, MembershipOperation, plan_create, plan_delete, plan_update
from core.constants import CLIENT_CALLS, NOT_FOUND_CODES
from core.errors import AggregateError, RemoteCallError, ValidationError, error_code
from core.models import MemberSet, NotFound, PolicyAttachment

logger = logging.getLogger(__name__)


class PolicyAttachmentReconciler:
    """Reconcile declared policy membership against the IAM API.

    The client is any object exposing the boto3 ``iam`` methods
    ``attach_*_policy``, ``detach_*_policy``, ``get_policy`` and the
    ``list_entities_for_policy`` paginator. Each operation is one-shot; the
    caller supplies prior and desired membership and persists the result.
    """

    def __init__(self, client: Any | None = None) -> None:
        self._client = client or boto3.client("iam")

    def create(self, attachment: PolicyAttachment, desired: MemberSet) -> ReadResult:
        if desired.is_empty():
            raise ValidationError(f"No users, roles, or groups specified for {attachment.name}")

        self._apply("attach", attachment, plan_create(desired))
        attachment.id = attachment.name
        logger.info("Created policy attachment %s", attachment.name)
        return self.read(attachment)

    def read(self, attachment: PolicyAttachment) -> ReadResult:
        try:
            self._client.get_policy(PolicyArn=attachment.policy_arn)
        except ClientError as exc:
            if error_code(exc) in NOT_FOUND_CODES:
                logger.info("Policy %s no longer exists; dropping %s", attachment.policy_arn, attachment.name)
                attachment.id = None
                return NotFound(policy_arn=attachment.policy_arn)
            raise

        observed = self._list_entities(attachment.policy_arn)
        attachment.members = observed
        return observed

    def update(self, attachment: PolicyAttachment, prior: MemberSet, desired: MemberSet) -> ReadResult:
        diffs = plan_update(prior, desired)
        if not diffs:
            logger.debug("No membership changes for %s", attachment.name)
            return self.read(attachment)
        self._apply("update", attachment, diffs)
        return self.read(attachment)

    def delete(self, attachment: PolicyAttachment, members: MemberSet) -> None:
        self._apply("detach", attachment, plan_delete(members), keep_going=True)
        attachment.id = None
        logger.info("Deleted policy attachment %s", attachment.name)

    # ------------------------------------------------------------------
    def _apply(
        self,
        verb: str,
        attachment: PolicyAttachment,
        diffs: Iterable[MembershipDiff],
        *,
        keep_going: bool = False,
    ) -> None:
        """Run each kind independently; the first failure of a kind is reported.

        Without ``keep_going`` a failure ends that kind's remaining calls.
        """
        errors: dict[str, RemoteCallError] = {}
        for diff in diffs:
            for operation in diff.operations():
                try:
                    self._call(operation, attachment.policy_arn)
                except RemoteCallError as exc:
                    logger.warning("%s failed for %s: %s", operation.describe(), attachment.name, exc)
                    errors.setdefault(diff.kind, exc)
                    if not keep_going:
                        break
        if errors:
            raise AggregateError(verb, attachment.name, errors)

    def _call(self, operation: MembershipOperation, policy_arn: str) -> None:
        method, parameter = CLIENT_CALLS[(operation.action, operation.kind)]
        logger.debug("%s %s=%s PolicyArn=%s", method, parameter, operation.principal, policy_arn)
        try:
            getattr(self._client, method)(**{parameter: operation.principal, "PolicyArn": policy_arn})
        except (ClientError, BotoCoreError) as exc:
            raise RemoteCallError(operation, policy_arn, exc) from exc

    def _list_entities(self, policy_arn: str) -> MemberSet:
        users: list[str] = []
        roles: list[str] = []
        groups: list[str] = []
        paginator = self._client.get_paginator("list_entities_for_policy")
        for page in paginator.paginate(PolicyArn=policy_arn):
            users.extend(entry["UserName"] for entry in page.get("PolicyUsers", []))
            roles.extend(entry["RoleName"] for entry in page.get("PolicyRoles", []))
            groups.extend(entry["GroupName"] for entry in page.get("PolicyGroups", []))
        return MemberSet.from_lists(users=users, roles=roles, groups=groups)


__all__ = ["PolicyAttachmentReconciler"]
