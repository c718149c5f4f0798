"""CLI workflow tests against an in-memory IAM client."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cli import main as cli_main
from cli.config import Settings, load_settings

ARN = "arn:aws:iam::123456789012:policy/Deploy"
OTHER_ARN = "arn:aws:iam::123456789012:policy/Other"


@pytest.fixture
def workspace(tmp_path, monkeypatch, iam_client):
    monkeypatch.setattr(cli_main, "_build_client", lambda settings: iam_client)
    return tmp_path


def _declare(path: Path, arn: str = ARN, **members) -> None:
    lines = ["attachments:", "  - name: deployers", f"    policy_arn: {arn}"]
    for kind, names in members.items():
        lines.append(f"    {kind}: [{', '.join(names)}]")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _run(workspace: Path, *argv: str) -> int:
    return cli_main.app(
        [
            "--config",
            str(workspace / "iampa.yml"),
            "--declarations",
            str(workspace / "attachments.yml"),
            "--state",
            str(workspace / "state.json"),
            *argv,
        ]
    )


def _state(workspace: Path) -> dict:
    return json.loads((workspace / "state.json").read_text(encoding="utf-8"))


def test_cli_apply_creates_then_updates(workspace, iam_client):
    _declare(workspace / "attachments.yml", users=["alice"], roles=["r1", "r2"])
    assert _run(workspace, "apply", "--output", str(workspace / "out.json")) == 0
    assert iam_client.attached[ARN]["roles"] == {"r1", "r2"}
    entry = _state(workspace)["attachments"][0]
    assert entry["id"] == "deployers"
    assert entry["members"]["users"] == ["alice"]

    _declare(workspace / "attachments.yml", users=["alice"], roles=["r2", "r3"])
    before = len(iam_client.mutations)
    assert _run(workspace, "apply", "--output", str(workspace / "out.json")) == 0
    assert iam_client.mutations[before:] == [("detach_role_policy", "r1"), ("attach_role_policy", "r3")]
    rows = json.loads((workspace / "out.json").read_text(encoding="utf-8"))
    assert rows == [{"name": "deployers", "action": "update", "status": "ok", "error": ""}]


def test_cli_plan_does_not_call_remote(workspace, iam_client):
    _declare(workspace / "attachments.yml", groups=["ops"])
    out = workspace / "plan.json"
    assert _run(workspace, "plan", "--output", str(out)) == 0
    assert iam_client.calls == []
    plan = json.loads(out.read_text(encoding="utf-8"))
    assert plan[0]["action"] == "create"
    assert plan[0]["operations"] == ["attach group ops"]


def test_cli_apply_reports_failures(workspace, iam_client):
    iam_client.fail("attach_user_policy", "alice")
    _declare(workspace / "attachments.yml", users=["alice"])
    out = workspace / "out.json"
    assert _run(workspace, "apply", "--output", str(out)) == 1
    rows = json.loads(out.read_text(encoding="utf-8"))
    assert rows[0]["status"] == "failed"
    assert "users - " in rows[0]["error"]
    assert _state(workspace)["attachments"] == []


def test_cli_refresh_drops_missing_policy(workspace, iam_client):
    _declare(workspace / "attachments.yml", users=["alice"])
    assert _run(workspace, "apply", "--output", str(workspace / "out.json")) == 0
    iam_client.missing_policies.add(ARN)
    assert _run(workspace, "refresh", "--output", str(workspace / "refresh.json")) == 0
    assert _state(workspace)["attachments"] == []


def test_cli_destroy_detaches_everything(workspace, iam_client):
    _declare(workspace / "attachments.yml", users=["alice"], groups=["ops"])
    assert _run(workspace, "apply", "--output", str(workspace / "out.json")) == 0
    assert _run(workspace, "destroy", "--format", "table", "--output", str(workspace / "out.txt")) == 0
    assert iam_client.attached[ARN] == {"users": set(), "groups": set()}
    assert _state(workspace)["attachments"] == []
    assert "deployers" in (workspace / "out.txt").read_text(encoding="utf-8")


def test_cli_rejects_invalid_declarations(workspace, capsys):
    (workspace / "attachments.yml").write_text("attachments: nope\n", encoding="utf-8")
    assert _run(workspace, "plan") == 2
    assert "must be a list" in capsys.readouterr().err


def test_settings_load_and_merge(tmp_path):
    path = tmp_path / "iampa.yml"
    path.write_text("region: eu-west-1\nstate_path: custom.json\nlog_level: info\n", encoding="utf-8")
    settings = load_settings(path)
    assert settings.region == "eu-west-1"
    assert settings.state_path == Path("custom.json")
    assert settings.log_level == "INFO"

    merged = settings.merge_cli(format_override="md", verbose=True)
    assert merged.default_format == "md"
    assert merged.log_level == "DEBUG"
    assert merged.state_path == Path("custom.json")
    assert load_settings(tmp_path / "missing.yml") == Settings()


def test_cli_apply_replaces_on_policy_change(workspace, iam_client):
    _declare(workspace / "attachments.yml", users=["alice"])
    assert _run(workspace, "apply", "--output", str(workspace / "out.json")) == 0

    _declare(workspace / "attachments.yml", arn=OTHER_ARN, users=["alice"])
    before = len(iam_client.calls)
    assert _run(workspace, "apply", "--output", str(workspace / "out.json")) == 0

    mutations = [call for call in iam_client.calls[before:] if call[0].startswith(("attach_", "detach_"))]
    assert mutations == [
        ("detach_user_policy", {"UserName": "alice", "PolicyArn": ARN}),
        ("attach_user_policy", {"UserName": "alice", "PolicyArn": OTHER_ARN}),
    ]
    entry = _state(workspace)["attachments"][0]
    assert entry["policy_arn"] == OTHER_ARN
    assert entry["members"]["users"] == ["alice"]
    rows = json.loads((workspace / "out.json").read_text(encoding="utf-8"))
    assert rows == [{"name": "deployers", "action": "replace", "status": "ok", "error": ""}]


def test_cli_failed_replace_records_detached_policy(workspace, iam_client):
    _declare(workspace / "attachments.yml", users=["alice"])
    assert _run(workspace, "apply", "--output", str(workspace / "out.json")) == 0

    _declare(workspace / "attachments.yml", arn=OTHER_ARN, users=["alice"])
    iam_client.fail("attach_user_policy", "alice")
    assert _run(workspace, "apply", "--output", str(workspace / "out.json")) == 1

    # the old policy is already detached, so state must not still list it
    assert iam_client.attached[ARN]["users"] == set()
    assert _state(workspace)["attachments"] == []

    iam_client.failures.clear()
    assert _run(workspace, "apply", "--output", str(workspace / "out.json")) == 0
    assert iam_client.attached[OTHER_ARN]["users"] == {"alice"}
    assert _state(workspace)["attachments"][0]["policy_arn"] == OTHER_ARN


def test_cli_apply_no_refresh_plans_from_recorded_state(workspace, iam_client):
    _declare(workspace / "attachments.yml", users=["alice"])
    assert _run(workspace, "apply", "--output", str(workspace / "out.json")) == 0
    iam_client.attached[ARN]["users"].add("mallory")

    before = len(iam_client.mutations)
    assert _run(workspace, "apply", "--no-refresh", "--output", str(workspace / "out.json")) == 0
    assert iam_client.mutations[before:] == []
    assert json.loads((workspace / "out.json").read_text(encoding="utf-8"))[0]["action"] == "noop"

    assert _run(workspace, "apply", "--output", str(workspace / "out.json")) == 0
    assert iam_client.mutations[before:] == [("detach_user_policy", "mallory")]
    assert _state(workspace)["attachments"][0]["members"]["users"] == ["alice"]


def test_cli_show_renders_markdown_rows(workspace):
    _declare(workspace / "attachments.yml", users=["bob", "alice"])
    assert _run(workspace, "apply", "--output", str(workspace / "out.json")) == 0
    out = workspace / "show.md"
    assert _run(workspace, "show", "--format", "md", "--output", str(out)) == 0
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "| name | policyArn | users | roles | groups |"
    assert lines[2] == f"| deployers | {ARN} | alice, bob |  |  |"
