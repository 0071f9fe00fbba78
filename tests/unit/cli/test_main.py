"""Unit tests for onboardkit CLI command wiring."""

from __future__ import annotations

import json

import pytest

from cli.main import build_parser, main
from tests.fixture_paths import fixture_path


def test_parser_requires_a_command() -> None:
    """Running without a subcommand should exit with usage error."""
    with pytest.raises(SystemExit):
        build_parser().parse_args([])

    assert True


def test_cli_intake_prints_canonical_keys(tmp_path, capsys) -> None:
    """Intake should print the canonical key of every loaded applicant."""
    exit_code = main(["--data-root", str(tmp_path), "intake", str(fixture_path("applicant_batch.yaml"))])
    output = capsys.readouterr().out.split()

    assert exit_code == 0 and output == ["jo.driver@example.com", "sam@example.com"]


def test_cli_verify_phone_and_progress(tmp_path, capsys) -> None:
    """Verified applicants should resume at confirm details."""
    data_root = str(tmp_path)
    main(["--data-root", data_root, "intake", str(fixture_path("applicant_batch.yaml"))])
    main(["--data-root", data_root, "verify-phone", "jo.driver@example.com", "447700900001"])
    _ = capsys.readouterr()

    exit_code = main(["--data-root", data_root, "progress", "JO.DRIVER@EXAMPLE.COM"])
    output = capsys.readouterr().out

    assert exit_code == 0 and "next_stage=confirm_details" in output


def test_cli_verify_phone_mismatch_exits_nonzero(tmp_path, capsys) -> None:
    """A phone mismatch should return a failing exit code."""
    data_root = str(tmp_path)
    main(["--data-root", data_root, "intake", str(fixture_path("applicant_batch.yaml"))])

    exit_code = main(["--data-root", data_root, "verify-phone", "sam@example.com", "000"])
    output = capsys.readouterr().out

    assert exit_code == 1 and "is_valid=false" in output


def test_cli_acknowledge_twice_reports_idempotence(tmp_path, capsys) -> None:
    """A repeated acknowledgement should report already_acknowledged=true."""
    args = ["--data-root", str(tmp_path), "acknowledge", "liabilities", "--email", "jo@example.com"]
    main(args)
    _ = capsys.readouterr()

    main(args)
    output = capsys.readouterr().out

    assert "already_acknowledged=true" in output


def test_cli_acknowledge_rejects_unknown_policy(tmp_path) -> None:
    """Unknown policy names should fail argument parsing."""
    with pytest.raises(SystemExit):
        main(["--data-root", str(tmp_path), "acknowledge", "dress-code", "--email", "a@b.com"])

    assert True


def test_cli_report_prints_preview_json(tmp_path, capsys) -> None:
    """Report should print a JSON snapshot for applicants without a stored report."""
    data_root = str(tmp_path)
    main(["--data-root", data_root, "intake", str(fixture_path("applicant_batch.yaml"))])
    _ = capsys.readouterr()

    exit_code = main(["--data-root", data_root, "report", "sam@example.com"])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0 and payload["preview"] is True and payload["driverInfo"]["vehicleType"] == "car"


def test_cli_reports_domain_errors(tmp_path, capsys) -> None:
    """Domain errors should print error= and return 1."""
    exit_code = main(["--data-root", str(tmp_path), "report", "ghost@example.com"])
    output = capsys.readouterr().out

    assert exit_code == 1 and output.startswith("error=")


def test_cli_init_admin_and_stats(tmp_path, capsys) -> None:
    """Admins should be able to read stats after bootstrap."""
    data_root = str(tmp_path)
    main(["--data-root", data_root, "intake", str(fixture_path("applicant_batch.yaml"))])
    main(["--data-root", data_root, "init-admin", "--email", "root@example.com"])
    _ = capsys.readouterr()

    exit_code = main(["--data-root", data_root, "stats", "--admin", "root@example.com"])
    output = capsys.readouterr().out

    assert exit_code == 0 and "total=2" in output and "pending=2" in output


def test_cli_backfill_dry_run(tmp_path, capsys) -> None:
    """Backfill dry runs should print counters."""
    exit_code = main(["--data-root", str(tmp_path), "backfill-stages", "--dry-run"])
    output = capsys.readouterr().out

    assert exit_code == 0 and "scanned=0" in output
