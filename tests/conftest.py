"""Shared fixtures: an in-memory IAM client with boto3's method surface."""

from __future__ import annotations

from typing import Any, Iterator

import pytest
from botocore.exceptions import ClientError

POLICY_ARN = "arn:aws:iam::123456789012:policy/Deploy"

_KIND_BY_PARAM = {"UserName": "users", "RoleName": "roles", "GroupName": "groups"}
_ENTITY_KEYS = {"users": ("PolicyUsers", "UserName"), "roles": ("PolicyRoles", "RoleName"), "groups": ("PolicyGroups", "GroupName")}


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} raised by test"}}, operation)


class DummyPaginator:
    def __init__(self, client: "FakeIAMClient") -> None:
        self.client = client

    def paginate(self, **kwargs: Any) -> Iterator[dict[str, Any]]:
        self.client.calls.append(("list_entities_for_policy", kwargs))
        entities = self.client.attached.get(kwargs["PolicyArn"], {})
        # one page per kind so callers must follow every page
        for kind, (key, field) in _ENTITY_KEYS.items():
            names = sorted(entities.get(kind, set()))
            yield {key: [{field: name} for name in names], "IsTruncated": kind != "groups"}


class FakeIAMClient:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.attached: dict[str, dict[str, set[str]]] = {}
        self.missing_policies: set[str] = set()
        self.failures: dict[tuple[str, str], str] = {}
        self.get_policy_error: str | None = None

    # attach / detach -----------------------------------------------------
    def attach_user_policy(self, **kwargs: Any) -> dict[str, Any]:
        return self._mutate("attach_user_policy", kwargs)

    def attach_role_policy(self, **kwargs: Any) -> dict[str, Any]:
        return self._mutate("attach_role_policy", kwargs)

    def attach_group_policy(self, **kwargs: Any) -> dict[str, Any]:
        return self._mutate("attach_group_policy", kwargs)

    def detach_user_policy(self, **kwargs: Any) -> dict[str, Any]:
        return self._mutate("detach_user_policy", kwargs)

    def detach_role_policy(self, **kwargs: Any) -> dict[str, Any]:
        return self._mutate("detach_role_policy", kwargs)

    def detach_group_policy(self, **kwargs: Any) -> dict[str, Any]:
        return self._mutate("detach_group_policy", kwargs)

    # reads ------------------------------------------------------------------
    def get_policy(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("get_policy", kwargs))
        if self.get_policy_error:
            raise client_error(self.get_policy_error, "GetPolicy")
        if kwargs["PolicyArn"] in self.missing_policies:
            raise client_error("NoSuchEntity", "GetPolicy")
        return {"Policy": {"Arn": kwargs["PolicyArn"]}}

    def get_paginator(self, name: str) -> DummyPaginator:
        assert name == "list_entities_for_policy"
        return DummyPaginator(self)

    # helpers ----------------------------------------------------------------
    @property
    def mutations(self) -> list[tuple[str, str]]:
        return [
            (method, next(value for key, value in kwargs.items() if key in _KIND_BY_PARAM))
            for method, kwargs in self.calls
            if method.startswith(("attach_", "detach_"))
        ]

    def fail(self, method: str, principal: str, code: str = "AccessDenied") -> None:
        self.failures[(method, principal)] = code

    def _mutate(self, method: str, kwargs: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((method, kwargs))
        param = next(key for key in kwargs if key in _KIND_BY_PARAM)
        principal = kwargs[param]
        code = self.failures.get((method, principal))
        if code:
            raise client_error(code, method)
        members = self.attached.setdefault(kwargs["PolicyArn"], {}).setdefault(_KIND_BY_PARAM[param], set())
        if method.startswith("attach_"):
            members.add(principal)
        else:
            members.discard(principal)
        return {"ResponseMetadata": {"HTTPStatusCode": 200}}


@pytest.fixture
def iam_client() -> FakeIAMClient:
    return FakeIAMClient()
