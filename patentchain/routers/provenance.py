from fastapi import APIRouter, Depends, status
import logging

from ..dependencies import get_ledger
from ..ledger import Ledger
from ..models.provenance_models import (
    ActiveResponse,
    ProvenanceListResponse,
    ProvenanceRecord,
    RegisterRequest,
    RegisterResponse,
    StatusUpdateRequest,
    VerifyRequest,
    VerifyResponse,
)
from ..models.data_models import DocumentHash, ErrorResponse
from ..routers.auth import get_current_active_user

router = APIRouter(
    prefix="/provenance",
    tags=["Provenance Ledger"],
)

logger = logging.getLogger(__name__)


@router.post(
    "",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Linked asset not found"},
        status.HTTP_409_CONFLICT: {"model": ErrorResponse, "description": "Document hash already registered"},
    }
)
def register_document(
    register_request: RegisterRequest,
    current_user_address: str = Depends(get_current_active_user),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Commits the keccak-256 hash of a patent document and links it to an asset.
    The record starts in PENDING status.
    """
    logger.info(f"User {current_user_address} registering document {register_request.document_hash} for asset {register_request.asset_id}")
    record_id = ledger.provenance.register(
        current_user_address,
        register_request.document_hash,
        register_request.asset_number,
        register_request.title,
        register_request.description,
        register_request.filed_at,
        register_request.asset_id,
    )
    return RegisterResponse(record_id=record_id, document_hash=register_request.document_hash)


@router.get(
    "/hash/{document_hash}",
    response_model=ProvenanceRecord,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
)
def get_record_by_hash(document_hash: DocumentHash, ledger: Ledger = Depends(get_ledger)):
    """Looks a provenance record up by its committed document hash."""
    record_id = ledger.provenance.record_id_by_hash(document_hash)
    return ledger.provenance.get_record(record_id)


@router.get("/asset/{asset_id}", response_model=ProvenanceListResponse)
def get_records_for_asset(asset_id: int, ledger: Ledger = Depends(get_ledger)):
    return ProvenanceListResponse(records=ledger.provenance.records_for_asset(asset_id))


@router.get(
    "/{record_id}",
    response_model=ProvenanceRecord,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
)
def get_record(record_id: int, ledger: Ledger = Depends(get_ledger)):
    return ledger.provenance.get_record(record_id)


@router.put(
    "/{record_id}/status",
    response_model=ProvenanceRecord,
    responses={
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse, "description": "Caller is not the administrator"},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    }
)
def update_record_status(
    record_id: int,
    status_request: StatusUpdateRequest,
    current_user_address: str = Depends(get_current_active_user),
    ledger: Ledger = Depends(get_ledger),
):
    """Sets the lifecycle status and grant/expiry dates of a record. Administrator only."""
    ledger.provenance.update_status(
        current_user_address,
        record_id,
        status_request.status,
        status_request.granted_at,
        status_request.expires_at,
    )
    return ledger.provenance.get_record(record_id)


@router.post("/{record_id}/verify", response_model=VerifyResponse)
def verify_document(record_id: int, verify_request: VerifyRequest, ledger: Ledger = Depends(get_ledger)):
    """Checks a candidate hash against the committed one. Unknown records verify as false."""
    is_valid = ledger.provenance.verify(record_id, verify_request.document_hash)
    logger.info(f"Verification of record {record_id}: {is_valid}")
    return VerifyResponse(record_id=record_id, document_hash=verify_request.document_hash, is_valid=is_valid)


@router.get("/{record_id}/active", response_model=ActiveResponse)
def get_record_active(record_id: int, ledger: Ledger = Depends(get_ledger)):
    return ActiveResponse(record_id=record_id, is_active=ledger.provenance.is_active(record_id))
