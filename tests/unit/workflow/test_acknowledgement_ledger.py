"""Unit tests for the idempotent acknowledgement ledger."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
import itertools
import threading

import pytest

from core.config import OnboardConfig
from core.errors import AuthError, LedgerWriteFailure, OnboardStoreError
from core.types import Identity
from store.document_store import DocumentStore
from workflow.acknowledgement_ledger import (
    AcknowledgementLedger,
    AcknowledgementPolicy,
    acknowledgement_fields,
    parse_policy,
)

_IDENTITY = Identity(email="Jo@Example.com")


def _ticking_clock():
    start = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    ticks = itertools.count()
    return lambda: start + timedelta(seconds=next(ticks))


def _store(tmp_path) -> DocumentStore:
    return DocumentStore(replace(OnboardConfig.from_env(), data_root=tmp_path))


def test_second_acknowledgement_is_idempotent(tmp_path) -> None:
    """A repeated call should report already acknowledged and keep the timestamp."""
    store = _store(tmp_path)
    store.set("drivers", "jo@example.com", {"email": "jo@example.com"})
    ledger = AcknowledgementLedger(store, clock=_ticking_clock())

    first = ledger.acknowledge(AcknowledgementPolicy.FEE_STRUCTURE, _IDENTITY)
    stamped = (store.get("drivers", "jo@example.com") or {})["feeStructureAcknowledgedAt"]
    second = ledger.acknowledge(AcknowledgementPolicy.FEE_STRUCTURE, _IDENTITY)
    after = (store.get("drivers", "jo@example.com") or {})["feeStructureAcknowledgedAt"]

    assert (
        not first.already_acknowledged
        and second.success
        and second.already_acknowledged
        and stamped == after
    )


def test_legacy_alias_short_circuits_write(tmp_path) -> None:
    """An existing legacy alias should count as already acknowledged."""
    store = _store(tmp_path)
    store.set("drivers", "jo@example.com", {"acknowledgedCancellationPolicy": True})
    ledger = AcknowledgementLedger(store, clock=_ticking_clock())

    result = ledger.acknowledge(AcknowledgementPolicy.CANCELLATION_POLICY, _IDENTITY)

    assert result.already_acknowledged and store.get("drivers", "jo@example.com") == {
        "acknowledgedCancellationPolicy": True
    }


def test_acknowledgement_writes_every_alias(tmp_path) -> None:
    """A first acknowledgement should set flat and nested aliases."""
    store = _store(tmp_path)
    ledger = AcknowledgementLedger(store, clock=_ticking_clock())

    ledger.acknowledge(AcknowledgementPolicy.LIABILITIES, _IDENTITY)
    profile = store.get("drivers", "jo@example.com") or {}

    assert profile["acknowledgedLiabilities"] is True and profile["progress_liabilities"]["confirmed"] is True


def test_acknowledgement_reuses_legacy_cased_profile(tmp_path) -> None:
    """Profiles stored under the original casing should not be forked."""
    store = _store(tmp_path)
    store.set("drivers", "Jo@Example.com", {"email": "Jo@Example.com"})
    ledger = AcknowledgementLedger(store, clock=_ticking_clock())

    ledger.acknowledge(AcknowledgementPolicy.PAYMENT_CYCLE_SCHEDULE, _IDENTITY)

    assert set(store.list_documents("drivers")) == {"Jo@Example.com"}


def test_acknowledgement_requires_identity(tmp_path) -> None:
    """Missing identity should raise AuthError without writing."""
    store = _store(tmp_path)
    ledger = AcknowledgementLedger(store)

    with pytest.raises(AuthError):
        ledger.acknowledge(AcknowledgementPolicy.FEE_STRUCTURE, None)

    assert store.list_documents("drivers") == {}


def test_concurrent_first_calls_write_once(tmp_path) -> None:
    """Concurrent first acknowledgements should produce exactly one write."""
    results = []
    results_lock = threading.Lock()

    def _acknowledge() -> None:
        ledger = AcknowledgementLedger(_store(tmp_path))
        result = ledger.acknowledge(AcknowledgementPolicy.FEE_STRUCTURE, _IDENTITY)
        with results_lock:
            results.append(result.already_acknowledged)

    threads = [threading.Thread(target=_acknowledge) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(results) == [False] + [True] * 7


def test_store_failure_raises_ledger_write_failure(tmp_path, monkeypatch) -> None:
    """Transport failures should surface to the caller."""
    store = _store(tmp_path)

    def _failing_merge_if(*args, **kwargs):
        raise OnboardStoreError("disk full")

    monkeypatch.setattr(store, "merge_if", _failing_merge_if)
    ledger = AcknowledgementLedger(store)

    with pytest.raises(LedgerWriteFailure):
        ledger.acknowledge(AcknowledgementPolicy.FEE_STRUCTURE, _IDENTITY)

    assert True


def test_acknowledgement_fields_stamp_nested_alias() -> None:
    """Nested aliases should carry their own confirmation timestamp."""
    fields = acknowledgement_fields(AcknowledgementPolicy.FEE_STRUCTURE, "t1")

    assert fields["progress_fee_structure"] == {"confirmed": True, "confirmedAt": "t1"}


def test_parse_policy_accepts_cli_spelling() -> None:
    """Dashed and camel-case names should parse."""
    assert parse_policy("payment-cycle-schedule") is parse_policy("PaymentCycleSchedule")


def test_parse_policy_rejects_unknown_name() -> None:
    """Unknown policy names should raise ValueError."""
    with pytest.raises(ValueError):
        parse_policy("dress-code")

    assert True


def test_existing_acknowledgement_on_legacy_cased_profile_is_kept(tmp_path) -> None:
    """A prior acknowledgement under the original casing should not be rewritten."""
    store = _store(tmp_path)
    store.set("drivers", "Jo@Example.com", {"acknowledgedFeeStructure": True})
    ledger = AcknowledgementLedger(store, clock=_ticking_clock())

    result = ledger.acknowledge(AcknowledgementPolicy.FEE_STRUCTURE, Identity(email="jo@example.com"))

    assert result.already_acknowledged and set(store.list_documents("drivers")) == {"Jo@Example.com"}


def test_acknowledgement_refreshes_progress_stage(tmp_path) -> None:
    """The canonical stage field should follow a recorded acknowledgement."""
    store = _store(tmp_path)
    store.set("drivers", "jo@example.com", {"phoneVerified": True, "progressStage": "verify"})
    ledger = AcknowledgementLedger(store, clock=_ticking_clock())

    ledger.acknowledge(AcknowledgementPolicy.FEE_STRUCTURE, _IDENTITY)

    assert (store.get("drivers", "jo@example.com") or {})["progressStage"] == "fee_structure"
