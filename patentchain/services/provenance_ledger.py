import logging
from typing import Callable, List

from web3 import Web3

from ..errors import DuplicateHash, InvalidArgument, NotFound, Unauthorized
from ..ledger_store import LedgerStore
from ..models.data_models import normalize_document_hash
from ..models.provenance_models import ProvenanceRecord, ProvenanceStatus
from .asset_registry import AssetRegistry

logger = logging.getLogger(__name__)


def document_hash(content: str | bytes) -> str:
    """Keccak-256 commitment of a document, as 0x-prefixed hex."""
    if isinstance(content, str):
        digest = Web3.keccak(text=content)
    else:
        digest = Web3.keccak(primitive=content)
    return Web3.to_hex(digest)


class ProvenanceLedger:
    """
    Hash-committed records of patent documents.

    Records move PENDING -> GRANTED -> EXPIRED, with REJECTED as an
    administrative side exit. Status changes are administrator-only and any
    status may be set from any other.
    """

    def __init__(self, store: LedgerStore, registry: AssetRegistry, clock: Callable[[], int]):
        self.store = store
        self.registry = registry
        self.clock = clock

    def register(
        self,
        caller: str,
        doc_hash: str | bytes,
        asset_number: str,
        title: str,
        description: str,
        filed_at: int,
        asset_id: int,
    ) -> int:
        try:
            normalized = normalize_document_hash(doc_hash)
        except ValueError as e:
            raise InvalidArgument(str(e)) from e

        with self.store.transaction():
            if normalized in self.store.record_by_hash:
                existing = self.store.record_by_hash[normalized]
                logger.warning(f"Register rejected: hash {normalized} already recorded as {existing}")
                raise DuplicateHash(f"Document hash already registered as record {existing}.", document_hash=normalized)
            # Raises AssetNotFound for unknown assets
            owner = self.registry.owner_of(asset_id)

            record = ProvenanceRecord(
                record_id=self.store.next_id("provenance"),
                document_hash=normalized,
                asset_number=asset_number,
                title=title,
                description=description,
                filed_at=filed_at,
                asset_id=asset_id,
                owner=owner,
                registrant=caller,
                status=ProvenanceStatus.PENDING,
                registered_at=self.clock(),
            )
            self.store.records[record.record_id] = record
            self.store.record_by_hash[normalized] = record.record_id
            self.store.emit("Registered", record.registered_at, record.model_dump(mode="json"))

        logger.info(f"Registered provenance record {record.record_id} for asset {asset_id} (hash {normalized})")
        return record.record_id

    def update_status(
        self,
        caller: str,
        record_id: int,
        new_status: ProvenanceStatus,
        granted_at: int,
        expires_at: int,
    ) -> None:
        with self.store.transaction():
            if not self.registry.is_administrator(caller):
                logger.warning(f"Status update of record {record_id} rejected: {caller} is not the administrator")
                raise Unauthorized("Only the ledger administrator may update provenance status.", caller=caller)
            record = self._get(record_id)
            previous = record.status
            record.status = ProvenanceStatus(new_status)
            record.granted_at = granted_at
            record.expires_at = expires_at
            self.store.emit("StatusUpdated", self.clock(), {
                "record_id": record_id,
                "previous_status": previous.value,
                "status": record.status.value,
                "granted_at": granted_at,
                "expires_at": expires_at,
            })
        logger.info(f"Provenance record {record_id} status {previous.value} -> {record.status.value}")

    def verify(self, record_id: int, candidate_hash: str | bytes) -> bool:
        record = self.store.records.get(record_id)
        if record is None:
            return False
        try:
            return normalize_document_hash(candidate_hash) == record.document_hash
        except ValueError:
            return False

    def is_active(self, record_id: int) -> bool:
        record = self.store.records.get(record_id)
        if record is None:
            return False
        return record.status == ProvenanceStatus.GRANTED and self.clock() < record.expires_at

    def get_record(self, record_id: int) -> ProvenanceRecord:
        return self._get(record_id).model_copy()

    def record_id_by_hash(self, doc_hash: str | bytes) -> int:
        try:
            normalized = normalize_document_hash(doc_hash)
        except ValueError as e:
            raise InvalidArgument(str(e)) from e
        record_id = self.store.record_by_hash.get(normalized)
        if record_id is None:
            raise NotFound(f"No provenance record for hash {normalized}.", document_hash=normalized)
        return record_id

    def records_for_asset(self, asset_id: int) -> List[ProvenanceRecord]:
        with self.store.transaction():
            return [r.model_copy() for r in self.store.records.values() if r.asset_id == asset_id]

    def total_records(self) -> int:
        return len(self.store.records)

    def _get(self, record_id: int) -> ProvenanceRecord:
        record = self.store.records.get(record_id)
        if record is None:
            raise NotFound(f"Provenance record {record_id} not found.", record_id=record_id)
        return record
