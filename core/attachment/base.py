"""Capability implemented by resources a host engine can reconcile."""

from __future__ import annotations

from typing import Protocol, Union, runtime_checkable

from core.models import MemberSet, NotFound, PolicyAttachment

ReadResult = Union[MemberSet, NotFound]


@runtime_checkable
class ReconcilableResource(Protocol):
    def create(self, attachment: PolicyAttachment, desired: MemberSet) -> ReadResult: ...

    def read(self, attachment: PolicyAttachment) -> ReadResult: ...

    def update(self, attachment: PolicyAttachment, prior: MemberSet, desired: MemberSet) -> ReadResult: ...

    def delete(self, attachment: PolicyAttachment, members: MemberSet) -> None: ...


__all__ = ["ReadResult", "ReconcilableResource"]
