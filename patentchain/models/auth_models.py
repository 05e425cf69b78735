from pydantic import BaseModel, Field
from typing import Dict, Any


class NonceResponse(BaseModel):
    nonce: str = Field(..., description="Unique nonce for the SIWE message.")


class VerifyRequest(BaseModel):
    message: Dict[str, Any] = Field(..., description="The SIWE message object.")
    signature: str = Field(..., description="The signature provided by the user's wallet.")


class VerifyResponse(BaseModel):
    status: str = "ok"
    address: str = Field(..., description="The verified address of the caller.")
    access_token: str = Field(..., description="JWT access token identifying the caller on ledger operations.")
    token_type: str = Field("bearer", description="Type of the token (always 'bearer').")


class CallerResponse(BaseModel):
    address: str
    is_administrator: bool = False
