"""Web3 client for the time capsule contract."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from web3 import Web3

from app_settings import AppSettings
from models import Capsule
from services.errors import WalletNotConnected


logger = logging.getLogger(__name__)

# Only the entry points the guardian touches.
CAPSULE_ABI: list[dict[str, Any]] = [
    {
        "inputs": [],
        "name": "nextCapsuleId",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "name": "capsules",
        "outputs": [
            {"internalType": "address", "name": "creator", "type": "address"},
            {"internalType": "string", "name": "ipfsCID", "type": "string"},
            {"internalType": "uint256", "name": "unlockTime", "type": "uint256"},
            {"internalType": "uint256", "name": "createdAt", "type": "uint256"},
            {"internalType": "bytes32", "name": "passwordHash", "type": "bytes32"},
            {"internalType": "bool", "name": "unlocked", "type": "bool"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "uint256", "name": "_id", "type": "uint256"},
            {"internalType": "string", "name": "_password", "type": "string"},
        ],
        "name": "unlock",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


@dataclass
class CapsuleLedgerClient:
    """Read and write handle for the capsule contract.

    Transactions are signed locally when ``private_key`` is set; otherwise the
    node's default account sends them (development chains).
    """

    rpc_url: str
    contract_address: str
    private_key: str | None = field(default=None, repr=False)
    timeout: float = 30
    receipt_timeout: float = 180

    def __post_init__(self) -> None:
        self._web3 = Web3(Web3.HTTPProvider(self.rpc_url, request_kwargs={"timeout": self.timeout}))
        self._contract = self._web3.eth.contract(
            address=Web3.to_checksum_address(self.contract_address),
            abi=CAPSULE_ABI,
        )
        self._account = self._web3.eth.account.from_key(self.private_key) if self.private_key else None

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "CapsuleLedgerClient | None":
        """Return a client for ``settings`` or ``None`` when the ledger is not configured."""

        if not settings.ledger_configured:
            return None
        return cls(
            settings.rpc_url,
            settings.contract_address,
            private_key=settings.private_key,
            timeout=settings.request_timeout,
            receipt_timeout=settings.receipt_timeout,
        )

    # Reads -------------------------------------------------------------
    def is_connected(self) -> bool:
        try:
            return bool(self._web3.is_connected())
        except Exception as exc:
            logger.warning("Ledger connectivity probe failed: %s", exc)
            return False

    def get_capsule_count(self) -> int:
        return int(self._contract.functions.nextCapsuleId().call())

    def get_capsule(self, capsule_id: int) -> Capsule:
        record = self._contract.functions.capsules(int(capsule_id)).call()
        return Capsule.from_record(capsule_id, record)

    def get_chain_time(self) -> int:
        """Return the timestamp of the latest block."""

        block = self._web3.eth.get_block("latest")
        return int(block["timestamp"])

    # Writes ------------------------------------------------------------
    @property
    def sender(self) -> str | None:
        if self._account is not None:
            return self._account.address
        default = self._web3.eth.default_account
        return str(default) if default else None

    def unlock(self, capsule_id: int, password: str) -> Mapping[str, Any]:
        """Submit ``unlock(id, password)`` and wait for the receipt."""

        sender = self.sender
        if not sender:
            raise WalletNotConnected("No account is available to sign the unlock transaction.")
        function = self._contract.functions.unlock(int(capsule_id), password)
        if self._account is not None:
            tx = function.build_transaction(
                {"from": sender, "nonce": self._web3.eth.get_transaction_count(sender)}
            )
            signed = self._account.sign_transaction(tx)
            raw = getattr(signed, "raw_transaction", None) or signed.rawTransaction
            tx_hash = self._web3.eth.send_raw_transaction(raw)
        else:
            tx_hash = function.transact({"from": sender})
        logger.debug("Unlock transaction for capsule %s sent: %s", capsule_id, _hex(tx_hash))
        receipt = self._web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        return dict(receipt)


def _hex(value: Any) -> str:
    if hasattr(value, "hex") and callable(value.hex):
        return value.hex()
    return str(value)


__all__ = ["CAPSULE_ABI", "CapsuleLedgerClient"]
