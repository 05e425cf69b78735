import logging
from typing import Callable, List, Sequence

from ..errors import InvalidArgument, InvalidShareTable, LengthMismatch, NoShareTable, NotFound, Unauthorized, ZeroAmount
from ..ledger_store import LedgerStore
from ..models.asset_models import MAX_BPS
from ..models.payout_models import TransferReason
from ..models.revenue_models import DistributionPreview, DistributionRecord, Payout, RevenueShare
from .asset_registry import AssetRegistry
from .payout_service import PayoutDispatcher

logger = logging.getLogger(__name__)


def split_amount(shares: Sequence[RevenueShare], amount: int) -> List[Payout]:
    """Floors each recipient's share of ``amount``; the remainder is left to the caller."""
    return [Payout(recipient=s.recipient, amount=amount * s.share_bps // MAX_BPS) for s in shares]


class RevenueEngine:
    """
    Per-asset share tables and proportional payouts.

    Tables always sum to exactly 10000 bps; this is checked when a table is
    stored, so distribution never sees a malformed one. Flooring leaves a
    residual of at most one wei per recipient, which the ledger keeps and
    reports on the distribution record.
    """

    def __init__(self, store: LedgerStore, registry: AssetRegistry, payouts: PayoutDispatcher, clock: Callable[[], int]):
        self.store = store
        self.registry = registry
        self.payouts = payouts
        self.clock = clock

    def set_revenue_shares(self, caller: str, asset_id: int, recipients: Sequence[str], shares_bps: Sequence[int]) -> None:
        with self.store.transaction():
            owner = self.registry.owner_of(asset_id)
            if caller != owner:
                logger.warning(f"Share table for asset {asset_id} rejected: {caller} is not the owner")
                raise Unauthorized(f"Caller is not the owner of asset {asset_id}.", caller=caller)
            if len(recipients) != len(shares_bps):
                raise LengthMismatch(
                    f"Got {len(recipients)} recipients but {len(shares_bps)} shares.",
                    recipients=len(recipients),
                    shares=len(shares_bps),
                )
            if not recipients:
                raise InvalidShareTable("Share table cannot be empty.")
            if any(bps < 0 for bps in shares_bps):
                raise InvalidShareTable("Shares cannot be negative.", shares_bps=list(shares_bps))
            total = sum(shares_bps)
            if total != MAX_BPS:
                raise InvalidShareTable(f"Shares must sum to {MAX_BPS} bps, got {total}.", total=total)

            table = [RevenueShare(recipient=r, share_bps=bps) for r, bps in zip(recipients, shares_bps)]
            self.store.share_tables[asset_id] = table
            self.store.emit("SharesUpdated", self.clock(), {
                "asset_id": asset_id,
                "recipients": list(recipients),
                "shares_bps": list(shares_bps),
            })
        logger.info(f"Share table for asset {asset_id} set: {[(s.recipient, s.share_bps) for s in table]}")

    def revenue_shares(self, asset_id: int) -> List[RevenueShare]:
        with self.store.transaction():
            return [s.model_copy() for s in self.store.share_tables.get(asset_id, [])]

    def calculate_distribution(self, asset_id: int, amount: int) -> DistributionPreview:
        if amount < 0:
            raise InvalidArgument("Amount cannot be negative.", amount=amount)
        with self.store.transaction():
            table = self._table(asset_id)
            payouts = split_amount(table, amount)
        return DistributionPreview(
            asset_id=asset_id,
            total_amount=amount,
            recipients=[p.recipient for p in payouts],
            amounts=[p.amount for p in payouts],
            residual=amount - sum(p.amount for p in payouts),
        )

    def distribute_revenue(self, caller: str, asset_id: int, amount: int) -> int:
        """
        Splits ``amount`` across the asset's share table. The record and its
        events are committed before any payout is sent.
        """
        with self.store.transaction():
            table = self._table(asset_id)
            if amount <= 0:
                raise ZeroAmount("Distribution amount must be greater than zero.", amount=amount)

            payouts = split_amount(table, amount)
            record = DistributionRecord(
                distribution_id=self.store.next_id("distribution"),
                asset_id=asset_id,
                total_amount=amount,
                timestamp=self.clock(),
                payer=caller,
                payouts=payouts,
                residual=amount - sum(p.amount for p in payouts),
            )
            self.store.distributions[record.distribution_id] = record
            self.store.distributions_by_asset[asset_id].append(record.distribution_id)

            self.store.emit("RevenueDistributed", record.timestamp, {
                "distribution_id": record.distribution_id,
                "asset_id": asset_id,
                "total_amount": amount,
                "timestamp": record.timestamp,
                "payer": caller,
                "residual": record.residual,
            })
            transfers = []
            for payout in payouts:
                transfer = self.payouts.plan(
                    payout.recipient, payout.amount, TransferReason.REVENUE_SHARE, record.distribution_id,
                )
                # Payout scheduled; a failed send is reported later as TransferFailed
                self.store.emit("RecipientPaid", record.timestamp, {
                    "distribution_id": record.distribution_id,
                    "transfer_id": transfer.transfer_id,
                    "recipient": payout.recipient,
                    "amount": payout.amount,
                })
                transfers.append(transfer)

        logger.info(
            f"Distribution {record.distribution_id} on asset {asset_id}: {amount} from {caller} "
            f"across {len(payouts)} recipients (residual {record.residual})"
        )
        self.payouts.execute(transfers, reference=record.distribution_id)
        return record.distribution_id

    def total_received(self, recipient: str) -> int:
        with self.store.transaction():
            return self.store.total_received.get(recipient, 0)

    def distribution_history(self, asset_id: int) -> List[int]:
        with self.store.transaction():
            return list(self.store.distributions_by_asset.get(asset_id, []))

    def distribution_details(self, distribution_id: int) -> DistributionRecord:
        record = self.store.distributions.get(distribution_id)
        if record is None:
            raise NotFound(f"Distribution {distribution_id} not found.", distribution_id=distribution_id)
        return record.model_copy(deep=True)

    def _table(self, asset_id: int) -> List[RevenueShare]:
        table = self.store.share_tables.get(asset_id)
        if not table:
            raise NoShareTable(f"No revenue share table configured for asset {asset_id}.", asset_id=asset_id)
        return table
