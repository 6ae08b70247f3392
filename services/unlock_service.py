"""Submit unlock transactions and classify their failures."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import requests
from web3.exceptions import ContractLogicError, Web3Exception

from models import RevertKind
from services.errors import ContractRevert, GuardianError, WalletNotConnected


logger = logging.getLogger(__name__)

_REVERT_PREFIXES = (
    "execution reverted:",
    "vm exception while processing transaction: reverted with reason string",
    "vm exception while processing transaction: revert",
)

_TOO_EARLY_TOKENS = ("too early",)
_ALREADY_UNLOCKED_TOKENS = ("already", "unlocked")
_WRONG_PASSWORD_TOKENS = ("bad pass", "password", "revert")

REVERTED_RECEIPT_REASON = "transaction reverted"


def _strip_revert_prefix(message: str) -> str:
    text = (message or "").strip()
    lowered = text.lower()
    for prefix in _REVERT_PREFIXES:
        if lowered.startswith(prefix):
            text = text[len(prefix):]
            break
    return text.strip().strip("'\"").strip()


def extract_revert_reason(error: BaseException) -> str:
    """Return the contract's reason string for ``error``.

    Structured fields are preferred: ``ContractLogicError.message`` or the
    ``message`` of an RPC error payload. Other errors fall back to ``str``.
    """

    message: Any = None
    if isinstance(error, ContractLogicError):
        message = getattr(error, "message", None)
    elif error.args and isinstance(error.args[0], Mapping):
        message = error.args[0].get("message")
    if not message:
        message = str(error)
    return _strip_revert_prefix(str(message))


def classify_revert_reason(reason: str | None) -> RevertKind:
    """Sort a revert reason into a :class:`RevertKind`.

    This is a substring heuristic over free text and is fragile: a reason
    that happens to mention "password" or "revert" reads as a wrong
    password. Specific categories are checked before the generic tokens,
    and an empty reason counts as a bare revert.
    """

    lowered = (reason or "").strip().lower()
    if any(token in lowered for token in _TOO_EARLY_TOKENS):
        return RevertKind.TOO_EARLY
    if any(token in lowered for token in _ALREADY_UNLOCKED_TOKENS):
        return RevertKind.ALREADY_UNLOCKED
    if not lowered or any(token in lowered for token in _WRONG_PASSWORD_TOKENS):
        return RevertKind.WRONG_PASSWORD
    return RevertKind.UNKNOWN


def _is_rpc_error(error: BaseException) -> bool:
    return bool(error.args) and isinstance(error.args[0], Mapping)


def _revert_from(capsule_id: int, error: BaseException) -> ContractRevert:
    reason = extract_revert_reason(error)
    kind = classify_revert_reason(reason)
    logger.warning("Unlock of capsule %s failed (%s): %s", capsule_id, kind.value, reason)
    return ContractRevert(kind, reason)


def execute_unlock(capsule_id: int, password: str, ledger: Any) -> Mapping[str, Any]:
    """Send the unlock transaction and wait for it to be mined.

    On success the capsule is unlocked on the ledger for good, before any
    payload has been decrypted.
    """

    if ledger is None:
        raise WalletNotConnected()
    try:
        receipt = ledger.unlock(capsule_id, password)
    except GuardianError:
        raise
    except (ContractLogicError, Web3Exception, requests.RequestException) as exc:
        raise _revert_from(capsule_id, exc) from exc
    except ValueError as exc:
        # web3 raises RPC errors as ValueError(dict); other ValueErrors are local.
        if not _is_rpc_error(exc):
            raise
        raise _revert_from(capsule_id, exc) from exc

    receipt = dict(receipt or {})
    if receipt.get("status") == 0:
        kind = classify_revert_reason(REVERTED_RECEIPT_REASON)
        logger.warning("Unlock of capsule %s mined with status 0", capsule_id)
        raise ContractRevert(kind, REVERTED_RECEIPT_REASON)
    logger.info("Capsule %s unlocked on-chain", capsule_id)
    return receipt


__all__ = ["classify_revert_reason", "execute_unlock", "extract_revert_reason"]
