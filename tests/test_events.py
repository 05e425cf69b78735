"""Tests for the ledger event log."""

import pytest

from patentchain.errors import InvalidShareTable, TransferFailed, Unauthorized
from patentchain.models.license_models import LicenseStatus, LicenseType
from patentchain.models.provenance_models import ProvenanceStatus
from patentchain.services.provenance_ledger import document_hash

from conftest import ADMIN, ALICE, BOB, CAROL, DAY, ETHER, START_TIME


def names(events):
    return [event.name for event in events]


def test_every_mutation_emits_an_event(ledger, minted):
    record_id = ledger.provenance.register(ALICE, document_hash("doc"), "US-1", "T", "", 0, minted)
    ledger.provenance.update_status(ADMIN, record_id, ProvenanceStatus.GRANTED, START_TIME, START_TIME + DAY)
    license_id = ledger.licenses.create_license(ALICE, minted, BOB, LicenseType.FIELD_SPECIFIC, "Optics", ETHER, DAY)
    ledger.licenses.purchase_license(BOB, license_id, ETHER)
    ledger.licenses.update_license_status(ALICE, license_id, LicenseStatus.SUSPENDED)
    ledger.revenue.set_revenue_shares(ALICE, minted, [ALICE, BOB, CAROL], [5000, 3000, 2000])
    ledger.revenue.distribute_revenue(ALICE, minted, ETHER)
    ledger.registry.transfer(ALICE, minted, BOB)

    assert names(ledger.events()) == [
        "AssetMinted",
        "Registered",
        "StatusUpdated",
        "LicenseCreated",
        "LicensePurchased",
        "LicenseStatusChanged",
        "SharesUpdated",
        "RevenueDistributed",
        "RecipientPaid",
        "RecipientPaid",
        "RecipientPaid",
        "AssetTransferred",
    ]
    assert [e.event_id for e in ledger.events()] == list(range(1, 13))


def test_rejected_operations_emit_nothing(ledger, minted):
    before = len(ledger.events())
    with pytest.raises(Unauthorized):
        ledger.revenue.set_revenue_shares(BOB, minted, [BOB], [10000])
    with pytest.raises(Unauthorized):
        ledger.licenses.create_license(BOB, minted, BOB, LicenseType.EXCLUSIVE, "", ETHER, DAY)
    with pytest.raises(InvalidShareTable):
        ledger.revenue.set_revenue_shares(ALICE, minted, [BOB], [9000])
    assert len(ledger.events()) == before


def test_event_args_describe_the_change(ledger, minted):
    license_id = ledger.licenses.create_license(ALICE, minted, BOB, LicenseType.EXCLUSIVE, "Optics", ETHER, DAY)
    ledger.licenses.purchase_license(CAROL, license_id, 2 * ETHER)

    minted_event, = ledger.events(name="AssetMinted")
    assert minted_event.args["asset_id"] == minted
    assert minted_event.args["owner"] == ALICE
    assert minted_event.args["royalty_bps"] == 500

    created, = ledger.events(name="LicenseCreated")
    assert created.args["license_id"] == license_id
    assert created.args["licensee"] == BOB
    assert created.args["license_type"] == "EXCLUSIVE"

    purchased, = ledger.events(name="LicensePurchased")
    assert purchased.timestamp == START_TIME
    assert purchased.args["payer"] == CAROL
    assert purchased.args["fee_paid"] == ETHER
    assert purchased.args["refunded"] == ETHER


def test_recipient_paid_events_match_payouts(ledger, minted):
    ledger.revenue.set_revenue_shares(ALICE, minted, [ALICE, BOB, CAROL], [3333, 3333, 3334])
    distribution_id = ledger.revenue.distribute_revenue(ALICE, minted, 10)

    distributed, = ledger.events(name="RevenueDistributed")
    assert distributed.args["distribution_id"] == distribution_id
    assert distributed.args["total_amount"] == 10
    assert distributed.args["residual"] == 1

    paid = ledger.events(name="RecipientPaid")
    assert [(e.args["recipient"], e.args["amount"]) for e in paid] == [(ALICE, 3), (BOB, 3), (CAROL, 3)]


def test_events_since(ledger, minted):
    last_seen = ledger.events()[-1].event_id
    ledger.registry.transfer(ALICE, minted, BOB)

    newer = ledger.events(since=last_seen)
    assert names(newer) == ["AssetTransferred"]
    assert newer[0].args == {"asset_id": minted, "previous_owner": ALICE, "owner": BOB}
    assert ledger.events(since=newer[0].event_id) == []


def test_events_are_copies(ledger, minted):
    event = ledger.events()[0]
    event.args["owner"] = CAROL
    assert ledger.events()[0].args["owner"] == ALICE


def replay_totals(events):
    """Revenue received and still owed per recipient, rebuilt from the feed alone."""
    received, owed, failed_ids = {}, {}, set()
    for event in events:
        if event.name == "TransferFailed":
            failed_ids.add(event.args["transfer_id"])
            owed[event.args["recipient"]] = owed.get(event.args["recipient"], 0) + event.args["amount"]
    for event in events:
        args = event.args
        if event.name == "RecipientPaid" and args["transfer_id"] not in failed_ids:
            received[args["recipient"]] = received.get(args["recipient"], 0) + args["amount"]
        elif event.name == "OutstandingSettled":
            received[args["recipient"]] = received.get(args["recipient"], 0) + args["revenue_amount"]
            owed[args["recipient"]] -= args["amount"]
    return received, owed


def test_failed_and_settled_transfers_are_in_the_feed(ledger, gateway, minted):
    ledger.revenue.set_revenue_shares(ALICE, minted, [ALICE, CAROL], [8000, 2000])
    gateway.failing.add(CAROL)
    with pytest.raises(TransferFailed):
        ledger.revenue.distribute_revenue(BOB, minted, ETHER)

    failed, = ledger.events(name="TransferFailed")
    paid_to_carol, = [e for e in ledger.events(name="RecipientPaid") if e.args["recipient"] == CAROL]
    assert failed.args["transfer_id"] == paid_to_carol.args["transfer_id"]
    assert failed.args["recipient"] == CAROL
    assert failed.args["amount"] == 2 * ETHER // 10
    assert failed.args["reason"] == "revenue_share"
    assert failed.args["reference"] == 1

    received, owed = replay_totals(ledger.events())
    assert received == {ALICE: ledger.revenue.total_received(ALICE)}
    assert owed == {CAROL: ledger.payouts.outstanding(CAROL)}

    gateway.failing.clear()
    ledger.payouts.settle(CAROL)

    settled, = ledger.events(name="OutstandingSettled")
    assert settled.args["recipient"] == CAROL
    assert settled.args["amount"] == 2 * ETHER // 10
    assert settled.args["settled_transfer_ids"] == [failed.args["transfer_id"]]

    received, owed = replay_totals(ledger.events())
    assert received[CAROL] == ledger.revenue.total_received(CAROL) == 2 * ETHER // 10
    assert owed[CAROL] == ledger.payouts.outstanding(CAROL) == 0


def test_failed_settle_emits_no_settlement(ledger, gateway, minted):
    license_id = ledger.licenses.create_license(ALICE, minted, BOB, LicenseType.EXCLUSIVE, "Optics", ETHER, DAY)
    gateway.failing.add(ALICE)
    with pytest.raises(TransferFailed):
        ledger.licenses.purchase_license(BOB, license_id, ETHER)

    with pytest.raises(TransferFailed):
        ledger.payouts.settle(ALICE)

    failed, = ledger.events(name="TransferFailed")
    assert failed.args["reason"] == "license_fee"
    assert failed.args["reference"] == license_id
    assert ledger.events(name="OutstandingSettled") == []
