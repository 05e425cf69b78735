"""Full asset lifecycle across all four ledger components."""

from patentchain.models.license_models import LicenseType
from patentchain.models.provenance_models import ProvenanceStatus
from patentchain.services.provenance_ledger import document_hash

from conftest import ADMIN, ALICE, BOB, CAROL, DAY, ETHER, START_TIME, patent_metadata


def test_patent_lifecycle(ledger, gateway, clock):
    owner, licensee, partner = ALICE, BOB, CAROL

    # Mint and commit the patent document
    ledger.registry.mint(ADMIN, 1, patent_metadata(to=owner, royalty_bps=500))
    doc_hash = document_hash("patent document content")
    record_id = ledger.provenance.register(
        owner, doc_hash, "US-2023-TEST001", "Test Patent", "Test patent description", START_TIME - 30 * DAY, 1,
    )
    ledger.provenance.update_status(ADMIN, record_id, ProvenanceStatus.GRANTED, START_TIME, START_TIME + 20 * 365 * DAY)
    assert ledger.provenance.verify(record_id, doc_hash)
    assert ledger.provenance.is_active(record_id)

    # License the patent
    license_id = ledger.licenses.create_license(
        owner, 1, licensee, LicenseType.NON_EXCLUSIVE, "Software Development", ETHER, 365 * DAY,
    )
    clock.advance(DAY)
    ledger.licenses.purchase_license(licensee, license_id, ETHER)
    assert ledger.licenses.is_license_valid(license_id)
    assert ledger.licenses.has_valid_license(1, licensee)
    assert gateway.balance_of(owner) == ETHER

    # Share revenue with a partner
    ledger.revenue.set_revenue_shares(owner, 1, [owner, partner], [8000, 2000])
    distribution_id = ledger.revenue.distribute_revenue(licensee, 1, ETHER)

    assert gateway.balance_of(owner) == ETHER + 8 * ETHER // 10
    assert gateway.balance_of(partner) == 2 * ETHER // 10
    assert ledger.revenue.total_received(owner) == 8 * ETHER // 10
    assert ledger.revenue.total_received(partner) == 2 * ETHER // 10
    assert ledger.revenue.distribution_history(1) == [distribution_id]
    record = ledger.revenue.distribution_details(distribution_id)
    assert record.total_amount == ETHER
    assert record.residual == 0

    # Royalty on a secondary sale at 10 units
    assert ledger.registry.royalty_quote(1, 10 * ETHER) == (owner, ETHER // 2)

    # The license lapses after its term
    clock.advance(365 * DAY)
    assert not ledger.licenses.is_license_valid(license_id)
