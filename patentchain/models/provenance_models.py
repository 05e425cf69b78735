from enum import Enum
from pydantic import BaseModel, Field
from typing import List

from .data_models import DocumentHash


class ProvenanceStatus(str, Enum):
    PENDING = "PENDING"
    GRANTED = "GRANTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class ProvenanceRecord(BaseModel):
    record_id: int
    document_hash: str = Field(..., description="0x-prefixed keccak-256 digest of the source document.")
    asset_number: str
    title: str
    description: str = ""
    filed_at: int = 0
    asset_id: int
    owner: str = Field(..., description="Owner of the linked asset at registration time.")
    registrant: str = Field(..., description="Caller that registered the document.")
    status: ProvenanceStatus = ProvenanceStatus.PENDING
    granted_at: int = 0
    expires_at: int = 0
    registered_at: int = 0


class RegisterRequest(BaseModel):
    document_hash: DocumentHash
    asset_number: str
    title: str
    description: str = ""
    filed_at: int = Field(0, ge=0)
    asset_id: int


class RegisterResponse(BaseModel):
    record_id: int
    document_hash: str


class StatusUpdateRequest(BaseModel):
    status: ProvenanceStatus
    granted_at: int = Field(0, ge=0)
    expires_at: int = Field(0, ge=0)


class VerifyRequest(BaseModel):
    # Left unvalidated: malformed candidates simply fail verification
    document_hash: str


class VerifyResponse(BaseModel):
    record_id: int
    document_hash: str
    is_valid: bool


class ActiveResponse(BaseModel):
    record_id: int
    is_active: bool


class ProvenanceListResponse(BaseModel):
    records: List[ProvenanceRecord] = []
