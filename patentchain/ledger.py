import logging
import time
from typing import Callable, List

from .ledger_store import LedgerStore
from .models.event_models import LedgerEvent
from .services.asset_registry import AssetRegistry
from .services.license_manager import LicenseManager
from .services.payout_service import InMemoryPayoutGateway, PayoutDispatcher, PayoutGateway
from .services.provenance_ledger import ProvenanceLedger
from .services.revenue_engine import RevenueEngine

logger = logging.getLogger(__name__)


def system_clock() -> int:
    """Current unix time in whole seconds."""
    return int(time.time())


class Ledger:
    """
    The four ledger components over one store, clock and payout gateway.

        ledger = Ledger(administrator="0x...")
        ledger.registry.mint(admin, 1, metadata)
        ledger.licenses.create_license(owner, 1, licensee, ...)
    """

    def __init__(
        self,
        administrator: str | None,
        gateway: PayoutGateway | None = None,
        clock: Callable[[], int] | None = None,
        store: LedgerStore | None = None,
    ):
        self.store = store or LedgerStore()
        self.clock = clock or system_clock
        self.gateway = gateway or InMemoryPayoutGateway()

        self.payouts = PayoutDispatcher(self.store, self.gateway, self.clock)
        self.registry = AssetRegistry(self.store, administrator, self.clock)
        self.provenance = ProvenanceLedger(self.store, self.registry, self.clock)
        self.licenses = LicenseManager(self.store, self.registry, self.payouts, self.clock)
        self.revenue = RevenueEngine(self.store, self.registry, self.payouts, self.clock)
        logger.info(f"Ledger initialised (administrator={administrator}, gateway={type(self.gateway).__name__})")

    @property
    def administrator(self) -> str | None:
        return self.registry.administrator

    def events(self, since: int = 0, name: str | None = None) -> List[LedgerEvent]:
        return self.store.events_since(since, name)
