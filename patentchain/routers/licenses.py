from fastapi import APIRouter, Depends, status
import logging

from ..dependencies import get_ledger
from ..ledger import Ledger
from ..models.data_models import Address, ErrorResponse
from ..models.license_models import (
    CreateLicenseRequest,
    CreateLicenseResponse,
    HolderResponse,
    LicenseAgreement,
    LicenseIdListResponse,
    LicenseStatusRequest,
    LicenseValidityResponse,
    PurchaseLicenseRequest,
    PurchaseResult,
)
from ..routers.auth import get_current_active_user

router = APIRouter(
    prefix="/licenses",
    tags=["License Agreements"],
)

logger = logging.getLogger(__name__)


@router.post(
    "",
    response_model=CreateLicenseResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse, "description": "Caller does not own the asset"},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Asset not found"},
    }
)
def create_license(
    license_request: CreateLicenseRequest,
    current_user_address: str = Depends(get_current_active_user),
    ledger: Ledger = Depends(get_ledger),
):
    """Offers a license over an asset to a licensee. Asset owner only."""
    license_id = ledger.licenses.create_license(
        current_user_address,
        license_request.asset_id,
        license_request.licensee,
        license_request.license_type,
        license_request.field_of_use,
        license_request.fee,
        license_request.duration_seconds,
    )
    return CreateLicenseResponse(license_id=license_id)


@router.get("/asset/{asset_id}", response_model=LicenseIdListResponse)
def get_licenses_for_asset(asset_id: int, ledger: Ledger = Depends(get_ledger)):
    return LicenseIdListResponse(license_ids=ledger.licenses.licenses_for_asset(asset_id))


@router.get("/asset/{asset_id}/holder/{licensee}", response_model=HolderResponse)
def get_holder_status(asset_id: int, licensee: Address, ledger: Ledger = Depends(get_ledger)):
    """Whether `licensee` currently holds a valid license over the asset."""
    return HolderResponse(
        asset_id=asset_id,
        licensee=licensee,
        has_valid_license=ledger.licenses.has_valid_license(asset_id, licensee),
    )


@router.get("/licensee/{licensee}", response_model=LicenseIdListResponse)
def get_licenses_for_licensee(licensee: Address, ledger: Ledger = Depends(get_ledger)):
    return LicenseIdListResponse(license_ids=ledger.licenses.licenses_for_licensee(licensee))


@router.get(
    "/{license_id}",
    response_model=LicenseAgreement,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
)
def get_license(license_id: int, ledger: Ledger = Depends(get_ledger)):
    return ledger.licenses.get_license(license_id)


@router.post(
    "/{license_id}/purchase",
    response_model=PurchaseResult,
    responses={
        status.HTTP_402_PAYMENT_REQUIRED: {"model": ErrorResponse, "description": "Amount paid is below the fee"},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_409_CONFLICT: {"model": ErrorResponse, "description": "License already paid"},
        status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse, "description": "Payment recorded but payout failed"},
    }
)
def purchase_license(
    license_id: int,
    purchase_request: PurchaseLicenseRequest,
    current_user_address: str = Depends(get_current_active_user),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Pays for a license and starts its term. The fee goes to the licensor and
    any excess is refunded to the caller.
    """
    logger.info(f"User {current_user_address} purchasing license {license_id} with {purchase_request.amount_paid}")
    return ledger.licenses.purchase_license(current_user_address, license_id, purchase_request.amount_paid)


@router.put(
    "/{license_id}/status",
    response_model=LicenseAgreement,
    responses={
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse, "description": "Caller is not the licensor"},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    }
)
def update_license_status(
    license_id: int,
    status_request: LicenseStatusRequest,
    current_user_address: str = Depends(get_current_active_user),
    ledger: Ledger = Depends(get_ledger),
):
    ledger.licenses.update_license_status(current_user_address, license_id, status_request.status)
    return ledger.licenses.get_license(license_id)


@router.get("/{license_id}/valid", response_model=LicenseValidityResponse)
def get_license_validity(license_id: int, ledger: Ledger = Depends(get_ledger)):
    return LicenseValidityResponse(license_id=license_id, is_valid=ledger.licenses.is_license_valid(license_id))
