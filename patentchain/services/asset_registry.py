import logging
from typing import Callable, List, Tuple

from ..errors import AssetNotFound, DuplicateAsset, InvalidArgument, Unauthorized
from ..ledger_store import LedgerStore
from ..models.asset_models import MAX_BPS, Asset, AssetMetadata

logger = logging.getLogger(__name__)


class AssetRegistry:
    """
    Ownership and immutable metadata of patent assets.

    Only the configured administrator may mint. Owners may hand an asset to
    another identity with ``transfer``.
    """

    def __init__(self, store: LedgerStore, administrator: str | None, clock: Callable[[], int]):
        self.store = store
        self.administrator = administrator
        self.clock = clock

    def is_administrator(self, caller: str) -> bool:
        return bool(self.administrator) and caller == self.administrator

    def mint(self, caller: str, asset_id: int, metadata: AssetMetadata) -> Asset:
        logger.info(f"Mint requested by {caller}: asset {asset_id} ({metadata.asset_number}) to {metadata.to}")
        with self.store.transaction():
            if not self.is_administrator(caller):
                logger.warning(f"Mint of asset {asset_id} rejected: {caller} is not the administrator")
                raise Unauthorized("Only the ledger administrator may mint assets.", caller=caller)
            if asset_id in self.store.assets:
                raise DuplicateAsset(f"Asset {asset_id} already exists.", asset_id=asset_id)
            if not 0 <= metadata.royalty_bps <= MAX_BPS:
                raise InvalidArgument(f"Royalty must be between 0 and {MAX_BPS} bps.", royalty_bps=metadata.royalty_bps)

            asset = Asset(
                asset_id=asset_id,
                owner=metadata.to,
                asset_number=metadata.asset_number,
                title=metadata.title,
                creator_name=metadata.creator_name,
                filed_at=metadata.filed_at,
                granted_at=metadata.granted_at,
                royalty_bps=metadata.royalty_bps,
                token_uri=metadata.token_uri,
                minted_at=self.clock(),
            )
            self.store.assets[asset_id] = asset
            self.store.assets_by_owner[asset.owner].append(asset_id)
            self.store.emit("AssetMinted", asset.minted_at, asset.model_dump())

        logger.info(f"Asset {asset_id} minted to {asset.owner}")
        return asset.model_copy()

    def transfer(self, caller: str, asset_id: int, to: str) -> None:
        with self.store.transaction():
            asset = self._get(asset_id)
            if caller != asset.owner:
                logger.warning(f"Transfer of asset {asset_id} rejected: {caller} is not the owner")
                raise Unauthorized(f"Caller is not the owner of asset {asset_id}.", caller=caller)
            previous = asset.owner
            asset.owner = to
            self.store.assets_by_owner[previous].remove(asset_id)
            self.store.assets_by_owner[to].append(asset_id)
            self.store.emit("AssetTransferred", self.clock(), {"asset_id": asset_id, "previous_owner": previous, "owner": to})
        logger.info(f"Asset {asset_id} transferred from {previous} to {to}")

    def exists(self, asset_id: int) -> bool:
        return asset_id in self.store.assets

    def owner_of(self, asset_id: int) -> str:
        return self._get(asset_id).owner

    def metadata_of(self, asset_id: int) -> Asset:
        return self._get(asset_id).model_copy()

    def royalty_quote(self, asset_id: int, sale_price: int) -> Tuple[str, int]:
        """Returns (receiver, amount) owed on a secondary sale at ``sale_price``."""
        if sale_price < 0:
            raise InvalidArgument("Sale price cannot be negative.", sale_price=sale_price)
        asset = self._get(asset_id)
        return asset.owner, sale_price * asset.royalty_bps // MAX_BPS

    def assets_of(self, owner: str) -> List[int]:
        with self.store.transaction():
            return list(self.store.assets_by_owner.get(owner, []))

    def balance_of(self, owner: str) -> int:
        return len(self.assets_of(owner))

    def total_supply(self) -> int:
        return len(self.store.assets)

    def _get(self, asset_id: int) -> Asset:
        asset = self.store.assets.get(asset_id)
        if asset is None:
            raise AssetNotFound(f"Asset {asset_id} not found.", asset_id=asset_id)
        return asset
