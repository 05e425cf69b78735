from fastapi import APIRouter, Depends, Query, status
import logging

from ..dependencies import get_ledger
from ..ledger import Ledger
from ..models.asset_models import (
    Asset,
    AssetListResponse,
    MintRequest,
    OwnerResponse,
    RoyaltyQuoteResponse,
    TransferRequest,
)
from ..models.data_models import Address, ErrorResponse
from ..routers.auth import get_current_active_user

router = APIRouter(
    prefix="/assets",
    tags=["Asset Registry"],
)

logger = logging.getLogger(__name__)


@router.post(
    "",
    response_model=Asset,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse, "description": "Caller is not the administrator"},
        status.HTTP_409_CONFLICT: {"model": ErrorResponse, "description": "Asset id already minted"},
    }
)
def mint_asset(
    mint_request: MintRequest,
    current_user_address: str = Depends(get_current_active_user),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Mints a new patent asset to `to`. Administrator only.

    - **asset_id**: caller-chosen identifier, never reused.
    - **royalty_bps**: secondary-sale royalty in basis points (0-10000).
    """
    logger.info(f"User {current_user_address} minting asset {mint_request.asset_id}")
    return ledger.registry.mint(current_user_address, mint_request.asset_id, mint_request.to_metadata())


@router.get("/owner/{owner_address}", response_model=AssetListResponse)
def get_assets_of_owner(owner_address: Address, ledger: Ledger = Depends(get_ledger)):
    """Lists the asset ids currently owned by an address."""
    return AssetListResponse(owner=owner_address, asset_ids=ledger.registry.assets_of(owner_address))


@router.get(
    "/{asset_id}",
    response_model=Asset,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
)
def get_asset(asset_id: int, ledger: Ledger = Depends(get_ledger)):
    return ledger.registry.metadata_of(asset_id)


@router.get(
    "/{asset_id}/owner",
    response_model=OwnerResponse,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
)
def get_asset_owner(asset_id: int, ledger: Ledger = Depends(get_ledger)):
    return OwnerResponse(asset_id=asset_id, owner=ledger.registry.owner_of(asset_id))


@router.get(
    "/{asset_id}/royalty",
    response_model=RoyaltyQuoteResponse,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
)
def get_royalty_quote(
    asset_id: int,
    sale_price: int = Query(..., ge=0, description="Sale price in wei."),
    ledger: Ledger = Depends(get_ledger),
):
    """Royalty owed to the asset owner on a secondary sale (floored)."""
    receiver, amount = ledger.registry.royalty_quote(asset_id, sale_price)
    return RoyaltyQuoteResponse(asset_id=asset_id, sale_price=sale_price, receiver=receiver, amount=amount)


@router.post(
    "/{asset_id}/transfer",
    response_model=OwnerResponse,
    responses={
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse, "description": "Caller does not own the asset"},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    }
)
def transfer_asset(
    asset_id: int,
    transfer_request: TransferRequest,
    current_user_address: str = Depends(get_current_active_user),
    ledger: Ledger = Depends(get_ledger),
):
    """Transfers ownership of an asset. Current owner only."""
    ledger.registry.transfer(current_user_address, asset_id, transfer_request.to)
    return OwnerResponse(asset_id=asset_id, owner=transfer_request.to)
