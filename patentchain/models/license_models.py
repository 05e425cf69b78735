from enum import Enum
from pydantic import BaseModel, Field
from typing import List

from .data_models import Address


class LicenseType(str, Enum):
    EXCLUSIVE = "EXCLUSIVE"
    NON_EXCLUSIVE = "NON_EXCLUSIVE"
    FIELD_SPECIFIC = "FIELD_SPECIFIC"


class LicenseStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"


class LicenseAgreement(BaseModel):
    license_id: int
    asset_id: int
    licensor: str
    licensee: str
    license_type: LicenseType
    field_of_use: str = ""
    fee: int = Field(..., ge=0, description="License fee in wei.")
    start_date: int = Field(0, description="Unix timestamp of payment; 0 until paid.")
    duration_seconds: int = Field(..., ge=0)
    status: LicenseStatus = LicenseStatus.ACTIVE
    is_paid: bool = False
    created_at: int = 0

    @property
    def end_date(self) -> int:
        return self.start_date + self.duration_seconds if self.is_paid else 0


class CreateLicenseRequest(BaseModel):
    asset_id: int
    licensee: Address
    license_type: LicenseType = LicenseType.NON_EXCLUSIVE
    field_of_use: str = ""
    fee: int = Field(..., ge=0)
    duration_seconds: int = Field(..., gt=0)


class CreateLicenseResponse(BaseModel):
    license_id: int


class PurchaseLicenseRequest(BaseModel):
    amount_paid: int = Field(..., ge=0, description="Funds tendered by the licensee, in wei.")


class PurchaseResult(BaseModel):
    license_id: int
    fee_paid: int
    refunded: int = Field(0, description="Excess payment returned to the payer.")
    start_date: int


class LicenseStatusRequest(BaseModel):
    status: LicenseStatus


class LicenseValidityResponse(BaseModel):
    license_id: int
    is_valid: bool


class HolderResponse(BaseModel):
    asset_id: int
    licensee: str
    has_valid_license: bool


class LicenseIdListResponse(BaseModel):
    license_ids: List[int] = []
