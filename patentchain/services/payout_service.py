import logging
import threading
from typing import Callable, Dict, List, Set

from web3 import Web3
from web3.exceptions import TimeExhausted, TransactionNotFound, Web3Exception

from .. import config
from ..errors import TransferFailed
from ..ledger_store import LedgerStore
from ..models.payout_models import Transfer, TransferReason

logger = logging.getLogger(__name__)


class PayoutError(Exception):
    """Raised by a gateway when a value transfer did not go through."""


class PayoutGateway:
    """Moves funds held by the ledger to a recipient."""

    def send(self, recipient: str, amount: int) -> str:
        """Sends ``amount`` wei to ``recipient`` and returns a transfer reference."""
        raise NotImplementedError


class InMemoryPayoutGateway(PayoutGateway):
    """
    Keeps balances in a dict. Used when no chain is configured, and in tests.

    Recipients listed in ``failing`` are rejected with PayoutError.
    ``on_send`` is called after every successful credit.
    """

    def __init__(self):
        self.balances: Dict[str, int] = {}
        self.failing: Set[str] = set()
        self.sent: List[tuple] = []
        self.on_send: Callable[[str, int], None] | None = None
        self._lock = threading.Lock()

    def send(self, recipient: str, amount: int) -> str:
        if recipient in self.failing:
            raise PayoutError(f"Recipient {recipient} rejected the transfer")
        with self._lock:
            self.balances[recipient] = self.balances.get(recipient, 0) + amount
            self.sent.append((recipient, amount))
            tx_ref = f"mem-{len(self.sent)}"
        if self.on_send:
            self.on_send(recipient, amount)
        return tx_ref

    def balance_of(self, recipient: str) -> int:
        with self._lock:
            return self.balances.get(recipient, 0)


class Web3PayoutGateway(PayoutGateway):
    """Pays out native currency from the treasury wallet."""

    def __init__(self, w3: Web3, private_key: str, gas_limit: int = 21000, receipt_timeout: int = 120):
        self.w3 = w3
        self.account = w3.eth.account.from_key(private_key)
        self.gas_limit = gas_limit
        self.receipt_timeout = receipt_timeout
        logger.info(f"Treasury wallet loaded. Address: {self.account.address}")

    def send(self, recipient: str, amount: int) -> str:
        logger.info(f"Sending {amount} wei from treasury {self.account.address} to {recipient}")
        tx_hash_hex = None
        try:
            # 1. Get the correct nonce
            nonce = self.w3.eth.get_transaction_count(self.account.address)

            # 2. Build a plain value transfer
            tx_data = {
                'chainId': self.w3.eth.chain_id,
                'to': Web3.to_checksum_address(recipient),
                'value': amount,
                'gas': self.gas_limit,
                'gasPrice': self.w3.eth.gas_price,
                'nonce': nonce,
                'from': self.account.address,
            }

            # 3. Sign and send
            signed_tx = self.w3.eth.account.sign_transaction(tx_data, private_key=self.account.key)
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
            tx_hash_hex = Web3.to_hex(tx_hash)
            logger.info(f"Payout transaction sent! Hash: {tx_hash_hex}")

            # 4. Wait for the receipt
            tx_receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except (TimeExhausted, TransactionNotFound) as e:
            raise PayoutError(f"Payout transaction {tx_hash_hex} not confirmed: {e}") from e
        except (Web3Exception, ValueError) as e:
            # Node-side rejections: insufficient funds, nonce too low, ...
            raise PayoutError(f"Payout to {recipient} rejected by node: {e}") from e
        except Exception as e:
            logger.error(f"An unexpected error occurred during payout to {recipient}: {e}", exc_info=True)
            raise PayoutError(f"Payout to {recipient} failed: {e}") from e

        if tx_receipt.status != 1:
            raise PayoutError(f"Payout transaction {tx_hash_hex} reverted")
        return tx_hash_hex


def build_gateway_from_config() -> PayoutGateway:
    """Returns an on-chain gateway when RPC_URL and TREASURY_PRIVATE_KEY are set, else an in-memory one."""
    if not config.RPC_URL or not config.TREASURY_PRIVATE_KEY:
        logger.warning("Payout chain not configured. Using in-memory payout gateway.")
        return InMemoryPayoutGateway()

    w3 = Web3(Web3.HTTPProvider(config.RPC_URL))
    if not w3.is_connected():
        logger.error(f"Failed to connect to RPC URL: {config.RPC_URL}. Using in-memory payout gateway.")
        return InMemoryPayoutGateway()
    logger.info(f"Connected to RPC URL: {config.RPC_URL}")
    return Web3PayoutGateway(
        w3,
        config.TREASURY_PRIVATE_KEY,
        gas_limit=config.PAYOUT_GAS_LIMIT,
        receipt_timeout=config.PAYOUT_RECEIPT_TIMEOUT,
    )


class PayoutDispatcher:
    """
    Executes transfers after the ledger state they belong to is committed.

    ``plan`` is called inside an operation's transaction; ``execute`` runs
    outside of it, so a recipient re-entering the ledger only sees committed
    state. Failed transfers stay owed to their recipient until settled.

    Outcomes are logged as events: ``TransferFailed`` for every transfer that
    did not go through and ``OutstandingSettled`` when an owed balance is
    finally paid.
    """

    def __init__(self, store: LedgerStore, gateway: PayoutGateway, clock: Callable[[], int]):
        self.store = store
        self.gateway = gateway
        self.clock = clock

    def plan(self, recipient: str, amount: int, reason: TransferReason, reference: int | None = None) -> Transfer:
        return Transfer(
            transfer_id=self.store.next_id("transfer"),
            recipient=recipient,
            amount=amount,
            reason=reason,
            reference=reference,
        )

    def execute(self, transfers: List[Transfer], reference: int | None = None) -> List[Transfer]:
        """Sends every transfer; raises TransferFailed if any of them failed."""
        for transfer in transfers:
            if transfer.amount == 0:
                transfer.tx_ref = "noop"
                continue
            try:
                transfer.tx_ref = self.gateway.send(transfer.recipient, transfer.amount)
            except PayoutError as e:
                logger.error(f"Transfer {transfer.transfer_id} of {transfer.amount} to {transfer.recipient} failed: {e}")
                transfer.error = str(e)
                transfer.tx_ref = None
            except Exception as e:
                # The ledger state is already committed; the remaining transfers must still run
                logger.error(f"Unexpected error in transfer {transfer.transfer_id} to {transfer.recipient}: {e}", exc_info=True)
                transfer.error = f"{type(e).__name__}: {e}"
                transfer.tx_ref = None

        self._record(transfers)

        failures = [t for t in transfers if not t.succeeded]
        if failures:
            raise TransferFailed(
                f"{len(failures)} of {len(transfers)} transfers failed; amounts recorded as outstanding.",
                reference=reference,
                failures=[t.model_dump(mode="json") for t in failures],
            )
        return transfers

    def _record(self, transfers: List[Transfer]) -> None:
        with self.store.transaction():
            now = self.clock()
            for transfer in transfers:
                self.store.transfers.append(transfer.model_copy())
                if transfer.succeeded:
                    if transfer.reason == TransferReason.REVENUE_SHARE:
                        self.store.total_received[transfer.recipient] += transfer.amount
                else:
                    self.store.outstanding[transfer.recipient].append(transfer.model_copy())
                    self.store.emit("TransferFailed", now, {
                        "transfer_id": transfer.transfer_id,
                        "recipient": transfer.recipient,
                        "amount": transfer.amount,
                        "reason": transfer.reason.value,
                        "reference": transfer.reference,
                        "error": transfer.error,
                    })

    def outstanding(self, recipient: str) -> int:
        with self.store.transaction():
            return sum(t.amount for t in self.store.outstanding.get(recipient, []))

    def transfers_to(self, recipient: str) -> List[Transfer]:
        """Every attempted transfer to ``recipient``, oldest first."""
        with self.store.transaction():
            return [t.model_copy() for t in self.store.transfers if t.recipient == recipient]

    def settle(self, caller: str) -> Transfer | None:
        """Retries the caller's whole outstanding balance as one transfer."""
        with self.store.transaction():
            owed = list(self.store.outstanding.get(caller, []))
            if not owed:
                return None
            # Cleared before sending so a re-entrant settle cannot double pay
            self.store.outstanding[caller] = []
            settlement = self.plan(caller, sum(t.amount for t in owed), TransferReason.OUTSTANDING_SETTLEMENT)

        try:
            settlement.tx_ref = self.gateway.send(caller, settlement.amount)
        except Exception as e:
            logger.error(f"Settlement of {settlement.amount} to {caller} failed: {e}", exc_info=True)
            with self.store.transaction():
                self.store.outstanding[caller] = owed + self.store.outstanding[caller]
            raise TransferFailed(
                f"Settlement of outstanding balance to {caller} failed.",
                failures=[t.model_dump(mode="json") for t in owed],
            ) from e

        revenue = sum(t.amount for t in owed if t.reason == TransferReason.REVENUE_SHARE)
        with self.store.transaction():
            self.store.transfers.append(settlement.model_copy())
            self.store.total_received[caller] += revenue
            self.store.emit("OutstandingSettled", self.clock(), {
                "transfer_id": settlement.transfer_id,
                "recipient": caller,
                "amount": settlement.amount,
                "revenue_amount": revenue,
                "settled_transfer_ids": [t.transfer_id for t in owed],
                "tx_ref": settlement.tx_ref,
            })
        logger.info(f"Settled outstanding balance of {settlement.amount} to {caller}")
        return settlement
