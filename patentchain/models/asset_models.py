from pydantic import BaseModel, Field
from typing import List

from .data_models import Address

MAX_BPS = 10_000


class AssetMetadata(BaseModel):
    to: str = Field(..., description="Identity that will own the minted asset.")
    asset_number: str = Field(..., description="Official patent/application number, e.g. 'US-2023-001'.")
    title: str
    creator_name: str = Field(..., description="Name of the inventor.")
    filed_at: int = Field(0, ge=0, description="Unix timestamp of filing.")
    granted_at: int = Field(0, ge=0, description="Unix timestamp of grant (0 if not granted).")
    royalty_bps: int = Field(0, ge=0, le=MAX_BPS, description="Secondary-sale royalty in basis points.")
    token_uri: str = Field("", description="Pointer to off-chain metadata (e.g. ipfs://...).")


class Asset(BaseModel):
    asset_id: int
    owner: str
    asset_number: str
    title: str
    creator_name: str
    filed_at: int
    granted_at: int
    royalty_bps: int
    token_uri: str = ""
    minted_at: int = 0


class MintRequest(BaseModel):
    asset_id: int = Field(..., ge=0, description="Caller-supplied unique asset identifier.")
    to: Address
    asset_number: str
    title: str
    creator_name: str
    filed_at: int = Field(0, ge=0)
    granted_at: int = Field(0, ge=0)
    royalty_bps: int = Field(0, ge=0, le=MAX_BPS)
    token_uri: str = ""

    def to_metadata(self) -> AssetMetadata:
        return AssetMetadata(**self.model_dump(exclude={"asset_id"}))


class TransferRequest(BaseModel):
    to: Address


class OwnerResponse(BaseModel):
    asset_id: int
    owner: str


class RoyaltyQuoteResponse(BaseModel):
    asset_id: int
    sale_price: int
    receiver: str
    amount: int


class AssetListResponse(BaseModel):
    owner: str
    asset_ids: List[int] = []
