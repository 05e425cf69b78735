import logging
from typing import Callable, List

from ..errors import AlreadyPaid, InsufficientPayment, InvalidArgument, NotFound, Unauthorized
from ..ledger_store import LedgerStore
from ..models.license_models import LicenseAgreement, LicenseStatus, LicenseType, PurchaseResult
from ..models.payout_models import TransferReason
from .asset_registry import AssetRegistry
from .payout_service import PayoutDispatcher

logger = logging.getLogger(__name__)


class LicenseManager:
    """
    Time-bounded, fee-gated usage grants over assets.

    A license becomes valid once paid and stays valid while its status is
    ACTIVE and ``now < start_date + duration_seconds``. Expiry is never
    written back; it is evaluated on read.
    """

    def __init__(self, store: LedgerStore, registry: AssetRegistry, payouts: PayoutDispatcher, clock: Callable[[], int]):
        self.store = store
        self.registry = registry
        self.payouts = payouts
        self.clock = clock

    def create_license(
        self,
        caller: str,
        asset_id: int,
        licensee: str,
        license_type: LicenseType,
        field_of_use: str,
        fee: int,
        duration_seconds: int,
    ) -> int:
        if fee < 0 or duration_seconds < 0:
            raise InvalidArgument("Fee and duration must be non-negative.", fee=fee, duration_seconds=duration_seconds)

        with self.store.transaction():
            owner = self.registry.owner_of(asset_id)
            if caller != owner:
                logger.warning(f"License creation on asset {asset_id} rejected: {caller} is not the owner")
                raise Unauthorized(f"Caller is not the owner of asset {asset_id}.", caller=caller)

            agreement = LicenseAgreement(
                license_id=self.store.next_id("license"),
                asset_id=asset_id,
                licensor=caller,
                licensee=licensee,
                license_type=LicenseType(license_type),
                field_of_use=field_of_use,
                fee=fee,
                duration_seconds=duration_seconds,
                created_at=self.clock(),
            )
            self.store.licenses[agreement.license_id] = agreement
            self.store.licenses_by_asset[asset_id].append(agreement.license_id)
            self.store.licenses_by_licensee[licensee].append(agreement.license_id)
            self.store.emit("LicenseCreated", agreement.created_at, agreement.model_dump(mode="json"))

        logger.info(f"License {agreement.license_id} created on asset {asset_id}: {caller} -> {licensee}, fee {fee}")
        return agreement.license_id

    def purchase_license(self, caller: str, license_id: int, amount_paid: int) -> PurchaseResult:
        """
        Marks the license paid and starts its term, then pays the fee to the
        licensor. Any amount above the fee is refunded to the payer.
        """
        with self.store.transaction():
            agreement = self._get(license_id)
            if agreement.is_paid:
                logger.warning(f"Purchase of license {license_id} rejected: already paid")
                raise AlreadyPaid(f"License {license_id} is already paid.", license_id=license_id)
            if amount_paid < agreement.fee:
                logger.warning(f"Purchase of license {license_id} rejected: paid {amount_paid} < fee {agreement.fee}")
                raise InsufficientPayment(
                    f"License {license_id} costs {agreement.fee}, received {amount_paid}.",
                    fee=agreement.fee,
                    amount_paid=amount_paid,
                )

            agreement.is_paid = True
            agreement.start_date = self.clock()
            refund = amount_paid - agreement.fee
            self.store.emit("LicensePurchased", agreement.start_date, {
                "license_id": license_id,
                "asset_id": agreement.asset_id,
                "licensee": agreement.licensee,
                "payer": caller,
                "fee_paid": agreement.fee,
                "refunded": refund,
                "start_date": agreement.start_date,
            })

            transfers = [self.payouts.plan(agreement.licensor, agreement.fee, TransferReason.LICENSE_FEE, license_id)]
            if refund:
                transfers.append(self.payouts.plan(caller, refund, TransferReason.LICENSE_REFUND, license_id))
            result = PurchaseResult(
                license_id=license_id,
                fee_paid=agreement.fee,
                refunded=refund,
                start_date=agreement.start_date,
            )

        logger.info(f"License {license_id} purchased by {caller} (fee {agreement.fee}, refund {refund})")
        self.payouts.execute(transfers, reference=license_id)
        return result

    def update_license_status(self, caller: str, license_id: int, new_status: LicenseStatus) -> None:
        with self.store.transaction():
            agreement = self._get(license_id)
            if caller != agreement.licensor:
                logger.warning(f"Status change of license {license_id} rejected: {caller} is not the licensor")
                raise Unauthorized(f"Caller is not the licensor of license {license_id}.", caller=caller)
            agreement.status = LicenseStatus(new_status)
            self.store.emit("LicenseStatusChanged", self.clock(), {
                "license_id": license_id,
                "status": agreement.status.value,
            })
        logger.info(f"License {license_id} status set to {agreement.status.value}")

    def is_license_valid(self, license_id: int) -> bool:
        agreement = self.store.licenses.get(license_id)
        if agreement is None:
            return False
        return (
            agreement.is_paid
            and agreement.status == LicenseStatus.ACTIVE
            and self.clock() < agreement.start_date + agreement.duration_seconds
        )

    def has_valid_license(self, asset_id: int, licensee: str) -> bool:
        with self.store.transaction():
            candidates = [
                license_id for license_id in self.store.licenses_by_asset.get(asset_id, [])
                if self.store.licenses[license_id].licensee == licensee
            ]
            return any(self.is_license_valid(license_id) for license_id in candidates)

    def get_license(self, license_id: int) -> LicenseAgreement:
        return self._get(license_id).model_copy()

    def licenses_for_asset(self, asset_id: int) -> List[int]:
        with self.store.transaction():
            return list(self.store.licenses_by_asset.get(asset_id, []))

    def licenses_for_licensee(self, licensee: str) -> List[int]:
        with self.store.transaction():
            return list(self.store.licenses_by_licensee.get(licensee, []))

    def _get(self, license_id: int) -> LicenseAgreement:
        agreement = self.store.licenses.get(license_id)
        if agreement is None:
            raise NotFound(f"License {license_id} not found.", license_id=license_id)
        return agreement
