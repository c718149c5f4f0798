"""Command line interface for reconciling IAM policy attachments."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from cli import config, output
from core.attachment.planner import CREATE, DELETE, NOOP, REPLACE, UPDATE, PlannedChange, plan_changes
from core.attachment.reconciler import PolicyAttachmentReconciler
from core.declarations import load_declarations
from core.errors import PolicyAttachmentError
from core.models import NotFound, PolicyAttachment
from core.state import StateStore

logger = logging.getLogger(__name__)

RECONCILE_ERRORS = (PolicyAttachmentError, ClientError, BotoCoreError)


class CLIError(Exception):
    def __init__(self, message: str, exit_code: int = 2) -> None:
        super().__init__(message)
        self.exit_code = exit_code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="iampa", description="IAM policy attachment reconciler")
    parser.add_argument("--config", type=Path, default=Path("iampa.yml"), help="Path to CLI configuration file")
    parser.add_argument("--declarations", type=Path, help="YAML file declaring policy attachments")
    parser.add_argument("--state", type=Path, help="JSON file recording observed attachments")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every remote call")

    subparsers = parser.add_subparsers(dest="command", required=True)

    plan_cmd = subparsers.add_parser("plan", help="Show attach/detach calls needed to match declarations")
    apply_cmd = subparsers.add_parser("apply", help="Attach and detach policies to match declarations")
    apply_cmd.add_argument("--no-refresh", action="store_true", help="Skip reading remote state before planning")
    refresh_cmd = subparsers.add_parser("refresh", help="Read attached entities into local state")
    destroy_cmd = subparsers.add_parser("destroy", help="Detach every attachment recorded in state")
    show_cmd = subparsers.add_parser("show", help="Print recorded state")

    for command in (plan_cmd, apply_cmd, refresh_cmd, destroy_cmd, show_cmd):
        command.add_argument("--output", type=Path)
        command.add_argument("--format", choices=list(output.FORMATS), help="Output format override")

    return parser


def app(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = config.load_settings(args.config).merge_cli(
            format_override=args.format,
            declarations=args.declarations,
            state=args.state,
            verbose=args.verbose,
        )
        _configure_logging(settings.log_level)

        if args.command == "plan":
            return _cmd_plan(args, settings)
        if args.command == "apply":
            return _cmd_apply(args, settings)
        if args.command == "refresh":
            return _cmd_refresh(args, settings)
        if args.command == "destroy":
            return _cmd_destroy(args, settings)
        if args.command == "show":
            return _cmd_show(args, settings)
    except CLIError as exc:
        print(exc, file=sys.stderr)
        return exc.exit_code
    except PolicyAttachmentError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:  # pragma: no cover - unexpected errors bubble up
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


# ---------------------------------------------------------------------------
# Command implementations


def _cmd_plan(args: argparse.Namespace, settings: config.Settings) -> int:
    declared = load_declarations(settings.declarations_path)
    state = StateStore(settings.state_path).load()
    changes = plan_changes(declared, state)
    output.emit([change.as_json() for change in changes], settings.default_format, output_path=args.output)
    return 0


def _cmd_apply(args: argparse.Namespace, settings: config.Settings) -> int:
    declared = load_declarations(settings.declarations_path)
    store = StateStore(settings.state_path)
    state = store.load()
    reconciler = PolicyAttachmentReconciler(client=_build_client(settings))

    if not args.no_refresh:
        _refresh(reconciler, state)
        store.save(state.values())

    rows: list[dict[str, Any]] = []
    failed = False
    for change in plan_changes(declared, state):
        try:
            _execute(reconciler, change, state)
        except RECONCILE_ERRORS as exc:
            failed = True
            logger.error("%s of %s failed: %s", change.action, change.name, exc)
            rows.append({"name": change.name, "action": change.action, "status": "failed", "error": str(exc)})
        else:
            rows.append({"name": change.name, "action": change.action, "status": "ok", "error": ""})
        finally:
            # a replace may have detached the old policy before failing
            store.save(state.values())

    output.emit(rows, settings.default_format, output_path=args.output)
    return 1 if failed else 0


def _cmd_refresh(args: argparse.Namespace, settings: config.Settings) -> int:
    store = StateStore(settings.state_path)
    state = store.load()
    reconciler = PolicyAttachmentReconciler(client=_build_client(settings))
    try:
        _refresh(reconciler, state)
    except RECONCILE_ERRORS as exc:
        raise CLIError(f"refresh failed: {exc}", exit_code=1) from exc
    store.save(state.values())
    output.emit(_state_rows(state), settings.default_format, output_path=args.output)
    return 0


def _cmd_destroy(args: argparse.Namespace, settings: config.Settings) -> int:
    store = StateStore(settings.state_path)
    state = store.load()
    reconciler = PolicyAttachmentReconciler(client=_build_client(settings))

    rows: list[dict[str, Any]] = []
    failed = False
    for name in sorted(state):
        attachment = state[name]
        try:
            reconciler.delete(attachment, attachment.members)
        except RECONCILE_ERRORS as exc:
            failed = True
            logger.error("delete of %s failed: %s", name, exc)
            rows.append({"name": name, "action": DELETE, "status": "failed", "error": str(exc)})
            continue
        del state[name]
        store.save(state.values())
        rows.append({"name": name, "action": DELETE, "status": "ok", "error": ""})

    output.emit(rows, settings.default_format, output_path=args.output)
    return 1 if failed else 0


def _cmd_show(args: argparse.Namespace, settings: config.Settings) -> int:
    state = StateStore(settings.state_path).load()
    output.emit(_state_rows(state), settings.default_format, output_path=args.output)
    return 0


# ---------------------------------------------------------------------------
# Helpers


def _build_client(settings: config.Settings) -> Any:
    session = boto3.Session(profile_name=settings.profile, region_name=settings.region)
    return session.client("iam")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _refresh(reconciler: PolicyAttachmentReconciler, state: dict[str, PolicyAttachment]) -> None:
    for name in sorted(state):
        if isinstance(reconciler.read(state[name]), NotFound):
            del state[name]


def _execute(
    reconciler: PolicyAttachmentReconciler,
    change: PlannedChange,
    state: dict[str, PolicyAttachment],
) -> None:
    if change.action == NOOP:
        return

    if change.action in {DELETE, REPLACE}:
        prior = change.prior
        reconciler.delete(prior, prior.members)  # type: ignore[union-attr]
        del state[change.name]
        if change.action == DELETE:
            return

    if change.action in {CREATE, REPLACE}:
        attachment = change.declared.model_copy(deep=True)  # type: ignore[union-attr]
        outcome = reconciler.create(attachment, attachment.members)
        if not isinstance(outcome, NotFound):
            state[change.name] = attachment
        return

    if change.action == UPDATE:
        current = state[change.name]
        outcome = reconciler.update(current, current.members, change.declared.members)  # type: ignore[union-attr]
        if isinstance(outcome, NotFound):
            del state[change.name]


def _state_rows(state: dict[str, PolicyAttachment]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for name in sorted(state):
        attachment = state[name]
        rows.append(
            {
                "name": name,
                "policyArn": attachment.policy_arn,
                "users": sorted(attachment.members.users),
                "roles": sorted(attachment.members.roles),
                "groups": sorted(attachment.members.groups),
            }
        )
    return rows


def main() -> None:
    raise SystemExit(app())


if __name__ == "__main__":
    main()
