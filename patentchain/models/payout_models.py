from enum import Enum
from pydantic import BaseModel, Field
from typing import List


class TransferReason(str, Enum):
    LICENSE_FEE = "license_fee"
    LICENSE_REFUND = "license_refund"
    REVENUE_SHARE = "revenue_share"
    OUTSTANDING_SETTLEMENT = "outstanding_settlement"


class Transfer(BaseModel):
    transfer_id: int
    recipient: str
    amount: int = Field(..., ge=0)
    reason: TransferReason
    reference: int | None = Field(None, description="License or distribution id the transfer belongs to.")
    tx_ref: str | None = Field(None, description="Gateway reference (tx hash) once sent.")
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.tx_ref is not None and self.error is None


class TransferListResponse(BaseModel):
    recipient: str
    transfers: List[Transfer] = []
