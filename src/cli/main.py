"""onboardkit CLI entry points.
This module exposes applicant-facing commands for intake and progress.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.admin_command import ADMIN_COMMANDS, add_admin_commands, run_admin_command
from core.config import OnboardConfig
from core.errors import OnboardError
from core.types import Identity
from store.onboarding_sdk import OnboardingClient
from workflow.acknowledgement_ledger import AcknowledgementPolicy, parse_policy


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="onboardkit", description="Driver onboarding CLI")
    parser.add_argument("--data-root", help="Override ONBOARD_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_intake_command(subparsers)
    _add_check_email_command(subparsers)
    _add_verify_phone_command(subparsers)
    _add_progress_command(subparsers)
    _add_acknowledge_command(subparsers)
    _add_complete_command(subparsers)
    add_admin_commands(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the onboardkit CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.data_root)
        return _dispatch(parser, client, args)
    except OnboardError as error:
        print(f"error={error}")
        return 1


def _dispatch(
    parser: argparse.ArgumentParser,
    client: OnboardingClient,
    args: argparse.Namespace,
) -> int:
    if args.command == "intake":
        return _run_intake_command(client, args)
    if args.command == "check-email":
        return _run_check_email_command(client, args)
    if args.command == "verify-phone":
        return _run_verify_phone_command(client, args)
    if args.command == "progress":
        return _run_progress_command(client, args)
    if args.command == "acknowledge":
        return _run_acknowledge_command(client, args)
    if args.command == "complete":
        return _run_complete_command(client, args)
    if args.command in ADMIN_COMMANDS:
        return run_admin_command(client, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None) -> OnboardingClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = OnboardConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return OnboardingClient(config)


def _run_intake_command(client: OnboardingClient, args: argparse.Namespace) -> int:
    """Handle intake command."""
    for canonical_key in client.load_applicants(args.batch):
        print(canonical_key)
    return 0


def _run_check_email_command(client: OnboardingClient, args: argparse.Namespace) -> int:
    """Handle check-email command."""
    result = client.check_email(args.email)
    print(f"exists={str(result.exists).lower()}")
    if result.exists:
        print(f"name={result.name or '-'}")
        print(f"phone={result.phone or '-'}")
        print(f"city={result.city or '-'}")
        print(f"country={result.country or '-'}")
    return 0


def _run_verify_phone_command(client: OnboardingClient, args: argparse.Namespace) -> int:
    """Handle verify-phone command.

    Returns:
        Exit code; 1 when the phone does not verify.
    """
    result = client.verify_phone(args.email, args.phone)
    print(f"is_valid={str(result.is_valid).lower()}")
    print(f"message={result.message}")
    print(f"profile_created={str(result.profile_created).lower()}")
    return 0 if result.is_valid else 1


def _run_progress_command(client: OnboardingClient, args: argparse.Namespace) -> int:
    """Handle progress command."""
    position = client.progress(args.email)
    print(f"current_stage={position.current_stage.value}")
    print(f"next_stage={position.next_stage.value}")
    for warning in position.warnings:
        print(f"warning=missing:{warning.missing_stage.value}")
    return 0


def _run_acknowledge_command(client: OnboardingClient, args: argparse.Namespace) -> int:
    """Handle acknowledge command."""
    policy: AcknowledgementPolicy = args.policy
    result = client.acknowledge(policy, Identity(email=args.email))
    print(f"success={str(result.success).lower()}")
    print(f"already_acknowledged={str(result.already_acknowledged).lower()}")
    return 0


def _run_complete_command(client: OnboardingClient, args: argparse.Namespace) -> int:
    """Handle complete command."""
    report = client.complete_onboarding(Identity(email=args.email))
    print(report["reportId"])
    return 0


def _add_intake_command(subparsers: Any) -> None:
    """Register intake subcommand."""
    parser = subparsers.add_parser("intake", help="Upsert applicants from a YAML batch file")
    parser.add_argument("batch", help="YAML applicant batch path")


def _add_check_email_command(subparsers: Any) -> None:
    """Register check-email subcommand."""
    parser = subparsers.add_parser("check-email", help="Look up an application by email")
    parser.add_argument("email", help="Applicant email")


def _add_verify_phone_command(subparsers: Any) -> None:
    """Register verify-phone subcommand."""
    parser = subparsers.add_parser(
        "verify-phone",
        help="Verify an applicant phone and open the driver profile",
    )
    parser.add_argument("email", help="Applicant email")
    parser.add_argument("phone", help="Phone number to verify")


def _add_progress_command(subparsers: Any) -> None:
    """Register progress subcommand."""
    parser = subparsers.add_parser("progress", help="Show an applicant's onboarding position")
    parser.add_argument("email", help="Applicant email")


def _add_acknowledge_command(subparsers: Any) -> None:
    """Register acknowledge subcommand."""
    parser = subparsers.add_parser("acknowledge", help="Record a policy acknowledgement")
    parser.add_argument(
        "policy",
        type=parse_policy,
        help="Policy: fee-structure, liabilities, cancellation-policy, payment-cycle-schedule",
    )
    parser.add_argument("--email", required=True, help="Authenticated applicant email")


def _add_complete_command(subparsers: Any) -> None:
    """Register complete subcommand."""
    parser = subparsers.add_parser("complete", help="Complete onboarding and write a report")
    parser.add_argument("--email", required=True, help="Authenticated applicant email")
