from pydantic import BaseModel, Field
from typing import List

from .data_models import Address


class RevenueShare(BaseModel):
    recipient: str
    share_bps: int = Field(..., description="Share of each distribution in basis points.")


class Payout(BaseModel):
    recipient: str
    amount: int


class DistributionPreview(BaseModel):
    asset_id: int
    total_amount: int
    recipients: List[str] = []
    amounts: List[int] = []
    residual: int = Field(0, description="Flooring remainder kept by the ledger.")


class DistributionRecord(BaseModel):
    distribution_id: int
    asset_id: int
    total_amount: int
    timestamp: int
    payer: str
    payouts: List[Payout] = []
    residual: int = 0


class SetSharesRequest(BaseModel):
    recipients: List[Address]
    shares_bps: List[int]


class RevenueSharesResponse(BaseModel):
    asset_id: int
    shares: List[RevenueShare] = []


class DistributeRequest(BaseModel):
    amount: int = Field(..., ge=0, description="Funds to split across the share table, in wei.")


class DistributeResponse(BaseModel):
    distribution_id: int
    residual: int = 0


class DistributionHistoryResponse(BaseModel):
    asset_id: int
    distribution_ids: List[int] = []


class TotalReceivedResponse(BaseModel):
    recipient: str
    total_received: int


class OutstandingResponse(BaseModel):
    recipient: str
    outstanding: int
