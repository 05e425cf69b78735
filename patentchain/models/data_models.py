from typing import Annotated

from hexbytes import HexBytes
from pydantic import AfterValidator, BaseModel
from web3 import Web3

DOCUMENT_HASH_BYTES = 32


class ErrorResponse(BaseModel):
    detail: str
    type: str | None = None


def checksum_address(value: str) -> str:
    """Validates an EVM address and returns its checksummed form."""
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ValueError(f"Invalid address: {value!r}")
    return Web3.to_checksum_address(value)


def normalize_document_hash(value: str | bytes) -> str:
    """
    Normalizes a 32-byte digest to 0x-prefixed lowercase hex.
    Raises ValueError for anything that is not exactly 32 bytes.
    """
    try:
        raw = bytes(HexBytes(value))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid document hash: {value!r}") from e
    if len(raw) != DOCUMENT_HASH_BYTES:
        raise ValueError(f"Document hash must be {DOCUMENT_HASH_BYTES} bytes, got {len(raw)}")
    return "0x" + raw.hex()


# Request/response field types validated at the HTTP boundary
Address = Annotated[str, AfterValidator(checksum_address)]
DocumentHash = Annotated[str, AfterValidator(normalize_document_hash)]
