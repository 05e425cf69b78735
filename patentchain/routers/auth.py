from fastapi import APIRouter, HTTPException, status, Depends
from fastapi.security import OAuth2PasswordBearer
from siwe import SiweMessage, generate_nonce
from siwe.siwe import VerificationError
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError
import logging
import threading

from ..dependencies import get_ledger
from ..ledger import Ledger
from ..models.auth_models import CallerResponse, NonceResponse, VerifyRequest, VerifyResponse
from ..models.data_models import ErrorResponse, checksum_address
from .. import config

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/verify")


class TokenData(BaseModel):
    sub: str  # Caller address


# Issued nonces -> issue time. Nonces are single use.
_nonce_store: dict[str, datetime] = {}
_nonce_lock = threading.Lock()
NONCE_EXPIRATION_SECONDS = 300

router = APIRouter(
    prefix="/auth",
    tags=["Authentication (SIWE)"],
)

logger = logging.getLogger(__name__)


def cleanup_expired_nonces():
    """Removes expired nonces from the store."""
    now = datetime.now(timezone.utc)
    with _nonce_lock:
        expired_keys = [
            key for key, issued in _nonce_store.items()
            if (now - issued).total_seconds() > NONCE_EXPIRATION_SECONDS
        ]
        for key in expired_keys:
            _nonce_store.pop(key, None)
    if expired_keys:
        logger.debug(f"Removed {len(expired_keys)} expired nonces")


def consume_nonce(nonce: str) -> bool:
    """Removes ``nonce`` from the store; False if unknown or expired."""
    with _nonce_lock:
        issued = _nonce_store.pop(nonce, None)
    if issued is None:
        return False
    return (datetime.now(timezone.utc) - issued).total_seconds() <= NONCE_EXPIRATION_SECONDS


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Creates a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=config.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


@router.get("/nonce", response_model=NonceResponse)
def get_nonce():
    """Generates a unique nonce for the client to embed in its SIWE message."""
    cleanup_expired_nonces()
    nonce = generate_nonce()
    with _nonce_lock:
        _nonce_store[nonce] = datetime.now(timezone.utc)
    logger.info(f"Generated nonce: {nonce}")
    return NonceResponse(nonce=nonce)


@router.post(
    "/verify",
    response_model=VerifyResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}}
)
def verify_signature(verify_request: VerifyRequest):
    """
    Verifies a SIWE message signature and returns a JWT access token.

    The token's subject is the wallet address, which becomes the caller
    identity of every ledger operation made with it.

    - **message**: The structured SIWE message signed by the user.
    - **signature**: The hex-encoded signature string.
    """
    if not config.EXPECTED_FRONTEND_DOMAIN:
        logger.error("Missing EXPECTED_FRONTEND_DOMAIN configuration.")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server configuration error.")

    try:
        siwe_message = SiweMessage(**verify_request.message)
        siwe_message.verify(verify_request.signature, domain=config.EXPECTED_FRONTEND_DOMAIN)
    except (ValueError, VerificationError) as e:
        logger.warning(f"SIWE verification failed: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Signature verification failed: {e}")

    if not consume_nonce(siwe_message.nonce):
        logger.warning(f"SIWE nonce unknown, expired or already used: {siwe_message.nonce}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired nonce.")

    address = checksum_address(siwe_message.address)
    access_token = create_access_token(data={"sub": address})
    logger.info(f"JWT issued for address: {address}")
    return VerifyResponse(address=address, access_token=access_token)


async def get_current_active_user(token: str = Depends(oauth2_scheme)) -> str:
    """
    Dependency that verifies the bearer JWT and returns the caller's
    checksummed address. Raises 401 if the token is invalid or expired.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
        token_data = TokenData(sub=payload.get("sub"))
        return checksum_address(token_data.sub)
    except JWTError as e:
        logger.warning(f"JWT Error during token decoding: {e}")
        raise credentials_exception
    except (ValidationError, ValueError) as e:
        logger.warning(f"JWT payload validation error: {e}")
        raise credentials_exception


@router.get("/me", response_model=CallerResponse)
def read_current_caller(
    current_user_address: str = Depends(get_current_active_user),
    ledger: Ledger = Depends(get_ledger),
):
    """Returns the authenticated caller and whether it is the ledger administrator."""
    return CallerResponse(
        address=current_user_address,
        is_administrator=ledger.registry.is_administrator(current_user_address),
    )
