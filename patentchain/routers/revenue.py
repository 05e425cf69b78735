from fastapi import APIRouter, Depends, Query, status
import logging

from ..dependencies import get_ledger
from ..ledger import Ledger
from ..models.data_models import Address, ErrorResponse
from ..models.payout_models import TransferListResponse
from ..models.revenue_models import (
    DistributeRequest,
    DistributeResponse,
    DistributionHistoryResponse,
    DistributionPreview,
    DistributionRecord,
    OutstandingResponse,
    RevenueSharesResponse,
    SetSharesRequest,
    TotalReceivedResponse,
)
from ..routers.auth import get_current_active_user

router = APIRouter(
    prefix="/revenue",
    tags=["Revenue Distribution"],
)

logger = logging.getLogger(__name__)


@router.get(
    "/distributions/{distribution_id}",
    response_model=DistributionRecord,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
)
def get_distribution(distribution_id: int, ledger: Ledger = Depends(get_ledger)):
    return ledger.revenue.distribution_details(distribution_id)


@router.get("/received/{recipient}", response_model=TotalReceivedResponse)
def get_total_received(recipient: Address, ledger: Ledger = Depends(get_ledger)):
    """Total revenue ever paid out to `recipient` across all distributions."""
    return TotalReceivedResponse(recipient=recipient, total_received=ledger.revenue.total_received(recipient))


@router.get("/outstanding/{recipient}", response_model=OutstandingResponse)
def get_outstanding(recipient: Address, ledger: Ledger = Depends(get_ledger)):
    """Amount owed to `recipient` from payouts that failed."""
    return OutstandingResponse(recipient=recipient, outstanding=ledger.payouts.outstanding(recipient))


@router.get("/transfers/{recipient}", response_model=TransferListResponse)
def get_transfers(recipient: Address, ledger: Ledger = Depends(get_ledger)):
    """Every payout attempted to `recipient`, with its gateway reference or error."""
    return TransferListResponse(recipient=recipient, transfers=ledger.payouts.transfers_to(recipient))


@router.post(
    "/outstanding/settle",
    response_model=OutstandingResponse,
    responses={status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse, "description": "Settlement transfer failed"}}
)
def settle_outstanding(
    current_user_address: str = Depends(get_current_active_user),
    ledger: Ledger = Depends(get_ledger),
):
    """Retries the payout of everything owed to the caller."""
    settlement = ledger.payouts.settle(current_user_address)
    if settlement:
        logger.info(f"Settled {settlement.amount} to {current_user_address} (tx {settlement.tx_ref})")
    return OutstandingResponse(recipient=current_user_address, outstanding=ledger.payouts.outstanding(current_user_address))


@router.put(
    "/{asset_id}/shares",
    response_model=RevenueSharesResponse,
    responses={
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse, "description": "Caller does not own the asset"},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        422: {"model": ErrorResponse, "description": "Shares do not sum to 10000 bps"},
    }
)
def set_revenue_shares(
    asset_id: int,
    shares_request: SetSharesRequest,
    current_user_address: str = Depends(get_current_active_user),
    ledger: Ledger = Depends(get_ledger),
):
    """Replaces the asset's share table. Asset owner only."""
    ledger.revenue.set_revenue_shares(
        current_user_address, asset_id, shares_request.recipients, shares_request.shares_bps,
    )
    return RevenueSharesResponse(asset_id=asset_id, shares=ledger.revenue.revenue_shares(asset_id))


@router.get("/{asset_id}/shares", response_model=RevenueSharesResponse)
def get_revenue_shares(asset_id: int, ledger: Ledger = Depends(get_ledger)):
    return RevenueSharesResponse(asset_id=asset_id, shares=ledger.revenue.revenue_shares(asset_id))


@router.post(
    "/{asset_id}/distribute",
    response_model=DistributeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "No share table configured"},
        422: {"model": ErrorResponse, "description": "Zero amount"},
        status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse, "description": "Distribution recorded but a payout failed"},
    }
)
def distribute_revenue(
    asset_id: int,
    distribute_request: DistributeRequest,
    current_user_address: str = Depends(get_current_active_user),
    ledger: Ledger = Depends(get_ledger),
):
    """Splits `amount` across the asset's share table and pays each recipient."""
    distribution_id = ledger.revenue.distribute_revenue(current_user_address, asset_id, distribute_request.amount)
    record = ledger.revenue.distribution_details(distribution_id)
    return DistributeResponse(distribution_id=distribution_id, residual=record.residual)


@router.get("/{asset_id}/preview", response_model=DistributionPreview)
def preview_distribution(
    asset_id: int,
    amount: int = Query(..., ge=0, description="Amount to split, in wei."),
    ledger: Ledger = Depends(get_ledger),
):
    """Computes what a distribution of `amount` would pay, without paying."""
    return ledger.revenue.calculate_distribution(asset_id, amount)


@router.get("/{asset_id}/history", response_model=DistributionHistoryResponse)
def get_distribution_history(asset_id: int, ledger: Ledger = Depends(get_ledger)):
    return DistributionHistoryResponse(asset_id=asset_id, distribution_ids=ledger.revenue.distribution_history(asset_id))
