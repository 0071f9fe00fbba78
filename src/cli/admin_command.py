"""Admin command wiring for onboardkit CLI."""

from __future__ import annotations

import argparse
import json
from typing import Any, cast

from admin.admin_users import APPLICATION_STATUSES, ApplicationStatus
from store.onboarding_sdk import OnboardingClient

ADMIN_COMMANDS = (
    "dashboard",
    "report",
    "stats",
    "set-status",
    "reset",
    "init-admin",
    "backfill-stages",
)


def add_admin_commands(subparsers: Any) -> None:
    """Register admin subcommands."""
    dashboard = subparsers.add_parser("dashboard", help="List merged applicant views")
    dashboard.add_argument("--admin", help="Viewing admin email; applies city restrictions")
    dashboard.add_argument("--json", action="store_true", help="Print full views as JSON")

    report = subparsers.add_parser("report", help="Print the latest report or a preview")
    report.add_argument("email", help="Applicant email")

    stats = subparsers.add_parser("stats", help="Print dashboard counters")
    stats.add_argument("--admin", help="Viewing admin email; applies city restrictions")

    set_status = subparsers.add_parser("set-status", help="Set an application review status")
    set_status.add_argument("email", help="Applicant email")
    set_status.add_argument("status", choices=APPLICATION_STATUSES, help="Review status")
    set_status.add_argument("--admin", required=True, help="Acting admin email")
    set_status.add_argument("--notes", default="", help="Reviewer notes")

    reset = subparsers.add_parser("reset", help="Reset an applicant's onboarding progress")
    reset.add_argument("email", help="Applicant email")
    reset.add_argument("--admin", required=True, help="Acting admin email")

    init_admin = subparsers.add_parser("init-admin", help="Bootstrap the first super admin")
    init_admin.add_argument("--email", help="Defaults to ONBOARD_SUPER_ADMIN_EMAIL")
    init_admin.add_argument("--name", help="Display name")

    backfill = subparsers.add_parser(
        "backfill-stages",
        help="Write the canonical progressStage onto every driver profile",
    )
    backfill.add_argument("--dry-run", action="store_true", help="Count changes without writing")


def run_admin_command(client: OnboardingClient, args: argparse.Namespace) -> int:
    """Execute one admin subcommand and print its output."""
    if args.command == "dashboard":
        views = client.dashboard(args.admin)
        if args.json:
            print(json.dumps([view.to_payload() for view in views], indent=2, sort_keys=True))
            return 0
        for view in views:
            print(
                f"{view.email}\t"
                f"{view.fields.get('status') or 'pending'}\t"
                f"{view.stage_label}\t"
                f"{view.created_at}"
            )
        return 0
    if args.command == "report":
        print(json.dumps(client.report(args.email), indent=2, sort_keys=True))
        return 0
    if args.command == "stats":
        stats = client.stats(args.admin)
        for name, value in vars(stats).items():
            print(f"{name}={value}")
        return 0
    if args.command == "set-status":
        status = cast(ApplicationStatus, args.status)
        client.update_application_status(args.admin, args.email, status, args.notes)
        print(f"status={status}")
        return 0
    if args.command == "reset":
        profile = client.reset_progress(args.admin, args.email)
        print(f"onboarding_status={profile.get('onboardingStatus')}")
        return 0
    if args.command == "init-admin":
        admin = client.initialize_super_admin(args.email, args.name)
        print(f"super_admin={admin.email}")
        return 0
    summary = client.backfill_stages(dry_run=args.dry_run)
    print(f"scanned={summary.scanned}")
    print(f"updated={summary.updated}")
    print(f"warnings={summary.warnings}")
    return 0
