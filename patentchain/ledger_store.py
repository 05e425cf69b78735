# patentchain/ledger_store.py

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from .models.asset_models import Asset
from .models.event_models import LedgerEvent
from .models.license_models import LicenseAgreement
from .models.payout_models import Transfer
from .models.provenance_models import ProvenanceRecord
from .models.revenue_models import DistributionRecord, RevenueShare

logger = logging.getLogger(__name__)


class LedgerStore:
    """
    In-memory tables for the whole ledger.

    All components share one store and one re-entrant lock, so every
    operation is applied as a single serialized step. State is lost on
    restart; the event log is the source an external indexer replays from.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._sequences: Dict[str, int] = defaultdict(int)

        self.assets: Dict[int, Asset] = {}
        self.assets_by_owner: Dict[str, List[int]] = defaultdict(list)

        self.records: Dict[int, ProvenanceRecord] = {}
        self.record_by_hash: Dict[str, int] = {}

        self.licenses: Dict[int, LicenseAgreement] = {}
        self.licenses_by_asset: Dict[int, List[int]] = defaultdict(list)
        self.licenses_by_licensee: Dict[str, List[int]] = defaultdict(list)

        self.share_tables: Dict[int, List[RevenueShare]] = {}
        self.distributions: Dict[int, DistributionRecord] = {}
        self.distributions_by_asset: Dict[int, List[int]] = defaultdict(list)

        self.transfers: List[Transfer] = []
        self.total_received: Dict[str, int] = defaultdict(int)
        self.outstanding: Dict[str, List[Transfer]] = defaultdict(list)

        self.events: List[LedgerEvent] = []

    @contextmanager
    def transaction(self) -> Iterator["LedgerStore"]:
        """Holds the ledger lock for the duration of one operation."""
        with self._lock:
            yield self

    def next_id(self, sequence: str) -> int:
        """Returns the next id of a monotonic sequence, starting at 1."""
        with self._lock:
            self._sequences[sequence] += 1
            return self._sequences[sequence]

    def emit(self, name: str, timestamp: int, args: Dict[str, Any]) -> LedgerEvent:
        """Appends an event to the log."""
        with self._lock:
            event = LedgerEvent(
                event_id=self.next_id("event"),
                name=name,
                timestamp=timestamp,
                args=args,
            )
            self.events.append(event)
        logger.debug(f"Event {event.event_id} {name}: {args}")
        return event

    def events_since(self, since: int = 0, name: str | None = None) -> List[LedgerEvent]:
        with self._lock:
            return [
                event.model_copy(deep=True) for event in self.events
                if event.event_id > since and (name is None or event.name == name)
            ]
