import logging
import threading

from . import config
from .ledger import Ledger
from .models.data_models import checksum_address
from .services.payout_service import build_gateway_from_config

logger = logging.getLogger(__name__)

_ledger: Ledger | None = None
_ledger_lock = threading.Lock()


def _administrator_from_config() -> str | None:
    if not config.LEDGER_ADMIN_ADDRESS:
        return None
    try:
        return checksum_address(config.LEDGER_ADMIN_ADDRESS)
    except ValueError as e:
        logger.error(f"Invalid LEDGER_ADMIN_ADDRESS: {e}")
        return None


def get_ledger() -> Ledger:
    """FastAPI dependency returning the process-wide ledger, built on first use."""
    global _ledger
    with _ledger_lock:
        if _ledger is None:
            _ledger = Ledger(
                administrator=_administrator_from_config(),
                gateway=build_gateway_from_config(),
            )
        return _ledger
