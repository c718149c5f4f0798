"""Set reconciliation between prior and desired policy membership."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from core.constants import ATTACH, DETACH, PRINCIPAL_KINDS
from core.models import MemberSet


@dataclass(frozen=True, slots=True)
class MembershipOperation:
    action: str
    kind: str
    principal: str

    def describe(self) -> str:
        return f"{self.action} {self.kind[:-1]} {self.principal}"


@dataclass(frozen=True, slots=True)
class MembershipDiff:
    """Difference between prior set P and desired set D for one principal kind.

    ``remove`` is ``P - D`` and ``add`` is ``D - P``. Members present in both
    sets, or in neither, never produce an operation.
    """

    kind: str
    prior: frozenset[str]
    desired: frozenset[str]

    @property
    def remove(self) -> List[str]:
        return sorted(self.prior - self.desired)

    @property
    def add(self) -> List[str]:
        return sorted(self.desired - self.prior)

    @property
    def changed(self) -> bool:
        return self.prior != self.desired

    def operations(self) -> List[MembershipOperation]:
        """Detaches first, then attaches."""
        ops = [MembershipOperation(DETACH, self.kind, name) for name in self.remove]
        ops.extend(MembershipOperation(ATTACH, self.kind, name) for name in self.add)
        return ops

    def as_json(self) -> dict[str, object]:
        return {"kind": self.kind, "remove": self.remove, "add": self.add}


def diff_members(kind: str, prior: Iterable[str], desired: Iterable[str]) -> MembershipDiff:
    if kind not in PRINCIPAL_KINDS:
        raise ValueError(f"Unknown principal kind: {kind}")
    return MembershipDiff(kind=kind, prior=frozenset(prior), desired=frozenset(desired))


def plan_update(prior: MemberSet, desired: MemberSet) -> list[MembershipDiff]:
    """Return diffs for the kinds whose membership changed."""
    diffs: list[MembershipDiff] = []
    for kind in PRINCIPAL_KINDS:
        diff = diff_members(kind, prior.of(kind), desired.of(kind))
        if diff.changed:
            diffs.append(diff)
    return diffs


def plan_create(desired: MemberSet) -> list[MembershipDiff]:
    return plan_update(MemberSet(), desired)


def plan_delete(current: MemberSet) -> list[MembershipDiff]:
    return plan_update(current, MemberSet())


def flatten(diffs: Iterable[MembershipDiff]) -> list[MembershipOperation]:
    return [operation for diff in diffs for operation in diff.operations()]


__all__ = [
    "MembershipDiff",
    "MembershipOperation",
    "diff_members",
    "flatten",
    "plan_create",
    "plan_delete",
    "plan_update",
]
