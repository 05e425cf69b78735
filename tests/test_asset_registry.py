"""Tests for asset minting, ownership and royalty quotes."""

import pytest
from pydantic import ValidationError

from patentchain.errors import AssetNotFound, DuplicateAsset, InvalidArgument, NotFound, Unauthorized
from patentchain.ledger import Ledger
from patentchain.models.asset_models import AssetMetadata

from conftest import ADMIN, ALICE, BOB, ETHER, START_TIME, patent_metadata


def test_mint_sets_owner_and_metadata(ledger):
    asset = ledger.registry.mint(ADMIN, 1, patent_metadata())

    assert asset.owner == ALICE
    assert ledger.registry.owner_of(1) == ALICE
    info = ledger.registry.metadata_of(1)
    assert info.asset_number == "US-2023-TEST001"
    assert info.title == "Test Patent System"
    assert info.creator_name == "Test Inventor"
    assert info.royalty_bps == 500
    assert info.token_uri == "ipfs://test-patent-metadata"
    assert info.minted_at == START_TIME


def test_mint_by_non_administrator_is_rejected(ledger):
    with pytest.raises(Unauthorized):
        ledger.registry.mint(ALICE, 1, patent_metadata())

    assert ledger.registry.total_supply() == 0
    assert not ledger.registry.exists(1)
    assert ledger.events() == []


def test_mint_without_configured_administrator_is_rejected(clock):
    ledger = Ledger(administrator=None, clock=clock)
    with pytest.raises(Unauthorized):
        ledger.registry.mint(ADMIN, 1, patent_metadata())


def test_duplicate_asset_id_is_rejected(ledger, minted):
    with pytest.raises(DuplicateAsset):
        ledger.registry.mint(ADMIN, minted, patent_metadata(to=BOB))
    # The original asset is untouched
    assert ledger.registry.owner_of(minted) == ALICE


def test_owner_of_unknown_asset(ledger):
    with pytest.raises(NotFound):
        ledger.registry.owner_of(42)
    with pytest.raises(AssetNotFound):
        ledger.registry.metadata_of(42)


def test_royalty_quote_floors_basis_points(ledger, minted):
    receiver, amount = ledger.registry.royalty_quote(minted, 10 * ETHER)
    assert receiver == ALICE
    assert amount == ETHER // 2

    ledger.registry.mint(ADMIN, 2, patent_metadata(royalty_bps=750))
    assert ledger.registry.royalty_quote(2, 10 * ETHER) == (ALICE, 75 * ETHER // 100)

    ledger.registry.mint(ADMIN, 3, patent_metadata(royalty_bps=333))
    assert ledger.registry.royalty_quote(3, 10) == (ALICE, 0)
    assert ledger.registry.royalty_quote(3, 10_000) == (ALICE, 333)


def test_royalty_quote_follows_current_owner(ledger, minted):
    ledger.registry.transfer(ALICE, minted, BOB)
    receiver, _ = ledger.registry.royalty_quote(minted, ETHER)
    assert receiver == BOB


def test_royalty_outside_range_is_rejected(ledger):
    with pytest.raises(ValidationError):
        patent_metadata(royalty_bps=10_001)

    unchecked = AssetMetadata.model_construct(**patent_metadata().model_dump() | {"royalty_bps": 20_000})
    with pytest.raises(InvalidArgument):
        ledger.registry.mint(ADMIN, 1, unchecked)
    assert not ledger.registry.exists(1)


def test_transfer_moves_ownership(ledger, minted):
    ledger.registry.transfer(ALICE, minted, BOB)

    assert ledger.registry.owner_of(minted) == BOB
    assert ledger.registry.assets_of(ALICE) == []
    assert ledger.registry.assets_of(BOB) == [minted]
    assert ledger.registry.balance_of(BOB) == 1


def test_transfer_by_non_owner_is_rejected(ledger, minted):
    with pytest.raises(Unauthorized):
        ledger.registry.transfer(BOB, minted, BOB)
    assert ledger.registry.owner_of(minted) == ALICE


def test_metadata_is_returned_as_a_copy(ledger, minted):
    info = ledger.registry.metadata_of(minted)
    info.owner = BOB
    info.royalty_bps = 9_999

    assert ledger.registry.owner_of(minted) == ALICE
    assert ledger.registry.metadata_of(minted).royalty_bps == 500


def test_assets_of_and_total_supply(ledger):
    ledger.registry.mint(ADMIN, 7, patent_metadata())
    ledger.registry.mint(ADMIN, 3, patent_metadata())
    ledger.registry.mint(ADMIN, 5, patent_metadata(to=BOB))

    assert ledger.registry.assets_of(ALICE) == [7, 3]
    assert ledger.registry.balance_of(BOB) == 1
    assert ledger.registry.total_supply() == 3
