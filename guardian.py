"""Conversation state machine for the capsule guardian.

One :class:`GuardianSession` exists per chat session. It owns the
conversation state and the transcript, and sequences the lookup, time-lock,
unlock, and payload components for each submitted turn. Every failure is
caught at the turn boundary and turned into a guardian reply; only a wrong
password keeps the session waiting for another password.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from app_settings import DEFAULT_ARTIFACT_PREFIX, AppSettings
from intent_map import extract_capsule_id, wants_new_capsule
from ledger_client import CapsuleLedgerClient
from models import Artifact, Capsule, ConversationState, GuardianMode, Message, MessageRole, RevertKind
from services.capsule_service import format_timestamp, lookup_capsule, shorten_address
from services.errors import (
    AlreadyUnlocked,
    CapsuleNotFound,
    ContractRevert,
    DecryptionFailure,
    GuardianError,
    InvalidInput,
    StorageFetchFailure,
    TimeLocked,
    TurnInProgress,
    UnknownError,
    WalletNotConnected,
)
from services.narration_service import GuardianNarrator
from services.payload_service import recover_payload
from services.prompt_service import NarrationEvent, Scenario
from services.time_lock import evaluate_time_lock
from services.unlock_service import execute_unlock
from storage_client import ContentStorageClient


logger = logging.getLogger(__name__)


GREETINGS = (
    "I am the Guardian of forgotten epochs.\nState your claim. Which vault do you seek?",
    "The vaults hum in silence, waiting for their rightful claimant.\n"
    "Speak the number of the one you wish to reclaim.",
    "You stand before the threshold of sealed time.\nWhich vault calls to you, seeker?",
)

READY_FOR_PASSWORD = (
    "The time-lock has dissolved.\nBut the **cryptographic seal** remains.\n\nSpeak the password to shatter it."
)
WRONG_PASSWORD = (
    "The seal rejects your words. The incantation is incorrect.\n"
    "Try again, seeker, or the vault stays sealed forever."
)
TOO_EARLY = "The temporal seal is still active. The chain does not lie, you must wait."
UNLOCK_SUCCESS = (
    "The seal is broken.\n\nYour payload emerges from the depths of the chain…\nDownloading your artifact now."
)
ALREADY_UNLOCKED = (
    "This vault has already been claimed.\nIts contents have been released. There is nothing left to retrieve.\n\n"
    "Speak another vault number if you seek elsewhere."
)
NOT_FOUND = "I sense no vault bearing that identifier.\nAre you certain of the number, seeker?"
NO_ID = (
    "I need a vault number to proceed.\n"
    "Speak it plainly, for example: *\"Capsule 7\"* or simply *\"7\"*."
)
WALLET_NEEDED = (
    "You must connect your wallet before approaching the vaults.\n"
    "The chain cannot verify your intent without it."
)
PASSWORD_BLANK = "You must speak the password, seeker. The seal awaits your words."
ABANDONING = "Abandoning the current vault… Let me look up the new one."
TESTING_SEAL = "Testing the cryptographic seal…"
DOWNLOAD_COMPLETE = "Your artifact has been delivered.\nThe vault is now empty. Is there another vault you seek?"
PAYLOAD_UNAVAILABLE = (
    "The seal is broken on the chain, but the archive did not surrender the payload.\n\n`{error}`\n\n"
    "The vault is now marked as claimed. Speaking the password again cannot reopen it."
)
PAYLOAD_LOCATION = "\nIts sealed contents remain at `{content_id}`."
DECRYPTION_FAILED = (
    "The seal is broken on the chain, yet the payload will not open with those words.\n"
    "The vault is now marked as claimed, and no other password can change that.\n"
    "Only the exact password used to seal the payload can still decrypt it."
)
FAREWELL = "The vault is resealed. Until next time, seeker."


def capsule_found(capsule_id: int, creator: str, date: str) -> str:
    return f"Vault **{capsule_id}**… sealed by `{creator}` on {date}.\nLet me consult the temporal seal…"


def time_locked(remaining_label: str) -> str:
    return (
        "Patience, seeker. This vault remains bound by time.\n"
        f"You must wait **{remaining_label}** before the seal dissolves.\n\n"
        "Return when the moment arrives. Or speak another vault number."
    )


def disturbance(message: str) -> str:
    return f"A disturbance ripples through the chain…\n\n`{message}`\n\nTry again, seeker."


# Pauses between sub-steps, in seconds, before ``pacing_scale`` is applied.
PAUSE_BEFORE_TURN = 0.6
PAUSE_BEFORE_VERDICT = 1.2
PAUSE_CONSULTING = 0.8
PAUSE_BEFORE_RELOOKUP = 0.5
PAUSE_BEFORE_UNLOCK = 0.4
PAUSE_BEFORE_DOWNLOAD = 0.8


@dataclass(frozen=True)
class TurnCommand:
    """A single user submission fed into the session."""

    text: str
    submitted_at: float = field(default_factory=time.time)


@dataclass
class TurnResult:
    """Everything one turn produced."""

    command: TurnCommand
    replies: list[Message] = field(default_factory=list)
    events: list[NarrationEvent] = field(default_factory=list)
    capsule_id: int | None = None
    artifact: Artifact | None = None
    error: GuardianError | None = None
    state: Mapping[str, Any] = field(default_factory=dict)

    @property
    def scenarios(self) -> list[Scenario]:
        return [event.scenario for event in self.events]


def _capsule_facts(capsule: Capsule) -> dict[str, Any]:
    return {
        "id": capsule.capsule_id,
        "creator": shorten_address(capsule.creator_address),
        "created_at": format_timestamp(capsule.created_at_timestamp),
        "unlock_time": format_timestamp(capsule.unlock_timestamp),
    }


class GuardianSession:
    """Owns the conversation state and transcript of one chat session."""

    def __init__(
        self,
        ledger: Any = None,
        storage: Any = None,
        *,
        narrator: GuardianNarrator | None = None,
        artifact_prefix: str = DEFAULT_ARTIFACT_PREFIX,
        download_dir: str | None = None,
        pacing_scale: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._ledger = ledger
        self._storage = storage if storage is not None else ContentStorageClient()
        self._narrator = narrator
        self._artifact_prefix = artifact_prefix
        self._download_dir = download_dir
        self._pacing_scale = max(0.0, float(pacing_scale))
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._state = ConversationState()
        self._messages: list[Message] = []
        self._processing = False
        self._turn: TurnResult | None = None

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "GuardianSession":
        ledger = CapsuleLedgerClient.from_settings(settings)
        if ledger is not None and not ledger.is_connected():
            logger.warning("Ledger at %s is unreachable; lookups will ask for a wallet", settings.rpc_url)
            ledger = None
        return cls(
            ledger,
            ContentStorageClient.from_settings(settings),
            narrator=GuardianNarrator.from_settings(settings),
            artifact_prefix=settings.artifact_prefix,
            download_dir=settings.download_dir,
            pacing_scale=settings.pacing_scale,
        )

    # Read-only views ---------------------------------------------------
    @property
    def state(self) -> ConversationState:
        return ConversationState(self._state.mode, self._state.active_capsule_id)

    @property
    def mode(self) -> GuardianMode:
        return self._state.mode

    @property
    def active_capsule_id(self) -> int | None:
        return self._state.active_capsule_id

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def processing(self) -> bool:
        return self._processing

    # Session lifecycle -------------------------------------------------
    def start(self) -> None:
        """Greet the claimant and start waiting for a capsule id."""

        if self._state.mode is not GuardianMode.GREETING:
            return
        self._reply(self._rng.choice(GREETINGS), NarrationEvent(Scenario.GREETING))
        self._state.await_id()

    def reset(self) -> None:
        """Discard the transcript and state, as when the chat is closed."""

        self._messages.clear()
        self._state.reset()
        self._processing = False
        self._turn = None

    def farewell(self) -> None:
        self._reply(FAREWELL)

    # Turn processing ---------------------------------------------------
    def submit(self, text: str) -> TurnResult | None:
        """Process ``text`` as one turn, or return ``None`` while busy."""

        try:
            return self.process(TurnCommand(text))
        except TurnInProgress:
            logger.info("Ignoring submission while a turn is in flight")
            return None

    def process(self, command: TurnCommand) -> TurnResult:
        if self._processing:
            raise TurnInProgress()
        self._processing = True
        self._turn = result = TurnResult(command=command)
        try:
            if self._state.mode is GuardianMode.GREETING:
                self.start()
            self._append(Message(MessageRole.USER, command.text))
            self._show_pending()
            self._pause(PAUSE_BEFORE_TURN)
            try:
                if self._state.mode is GuardianMode.AWAITING_PASSWORD:
                    self._handle_awaiting_password(command.text)
                else:
                    self._handle_awaiting_id(command.text)
            except GuardianError as exc:
                self._report(exc)
            except Exception as exc:
                logger.exception("Guardian turn failed")
                self._report(UnknownError(str(exc) or exc.__class__.__name__))
        finally:
            self._clear_pending()
            result.state = self._state.asdict()
            self._turn = None
            self._processing = False
        return result

    def _handle_awaiting_id(self, text: str) -> None:
        if self._ledger is None:
            raise WalletNotConnected()
        capsule_id = extract_capsule_id(text)
        if capsule_id is None:
            raise InvalidInput(text)
        self._track(capsule_id)

        view = lookup_capsule(capsule_id, self._ledger)
        capsule = view.capsule
        self._reply(capsule_found(capsule_id, view.short_creator, view.created_at_label))

        self._pause(PAUSE_BEFORE_VERDICT)
        self._show_pending()
        self._pause(PAUSE_CONSULTING)

        if capsule.unlocked:
            raise AlreadyUnlocked(capsule)

        status = evaluate_time_lock(capsule.unlock_timestamp, self._ledger.get_chain_time())
        if not status.dissolved:
            raise TimeLocked(capsule, status.remaining, status.label)

        self._state.await_password(capsule_id)
        logger.info("Capsule %s is ready; awaiting password", capsule_id)
        self._reply(READY_FOR_PASSWORD, NarrationEvent(Scenario.CAPSULE_FOUND_READY, _capsule_facts(capsule)))

    def _handle_awaiting_password(self, text: str) -> None:
        password = text.strip()
        if not password:
            self._reply(PASSWORD_BLANK)
            return

        if wants_new_capsule(text):
            logger.info("Abandoning capsule %s for a new lookup", self._state.active_capsule_id)
            self._reply(ABANDONING)
            self._pause(PAUSE_BEFORE_RELOOKUP)
            self._state.await_id()
            self._handle_awaiting_id(text)
            return

        capsule_id = self._state.active_capsule_id
        if capsule_id is None:
            self._state.await_id()
            raise InvalidInput(text)
        self._track(capsule_id)

        self._reply(TESTING_SEAL, NarrationEvent(Scenario.PASSWORD_TESTING, {"id": capsule_id}))
        self._pause(PAUSE_BEFORE_UNLOCK)
        self._show_pending()

        execute_unlock(capsule_id, password, self._ledger)
        self._reply(UNLOCK_SUCCESS, NarrationEvent(Scenario.UNLOCK_SUCCESS, {"id": capsule_id}))

        self._pause(PAUSE_BEFORE_DOWNLOAD)
        self._show_pending()
        content_id = ""
        try:
            capsule = lookup_capsule(capsule_id, self._ledger).capsule
            content_id = capsule.content_id
            artifact = recover_payload(
                capsule,
                password,
                self._storage,
                prefix=self._artifact_prefix,
                download_dir=self._download_dir,
            )
        except (StorageFetchFailure, DecryptionFailure):
            raise
        except Exception as exc:
            # The unlock is spent; every later failure reads as a lost payload.
            logger.exception("Payload recovery for capsule %s failed after unlock", capsule_id)
            raise StorageFetchFailure(content_id, detail=str(exc) or exc.__class__.__name__) from exc
        finally:
            self._state.await_id()

        if self._turn is not None:
            self._turn.artifact = artifact
        self._reply(
            DOWNLOAD_COMPLETE,
            NarrationEvent(Scenario.DOWNLOAD_COMPLETE, {"id": capsule_id, "filename": artifact.filename}),
        )

    # Failure reporting -------------------------------------------------
    def _report(self, exc: GuardianError) -> None:
        capsule_id = self._state.active_capsule_id
        if self._turn is not None:
            self._turn.error = exc
            capsule_id = self._turn.capsule_id if self._turn.capsule_id is not None else capsule_id

        if isinstance(exc, ContractRevert) and exc.kind is RevertKind.WRONG_PASSWORD:
            self._reply(WRONG_PASSWORD, NarrationEvent(Scenario.WRONG_PASSWORD, {"id": capsule_id}))
            return

        self._state.await_id()
        if isinstance(exc, WalletNotConnected):
            self._reply(WALLET_NEEDED, NarrationEvent(Scenario.WALLET_NEEDED))
        elif isinstance(exc, InvalidInput):
            self._reply(NO_ID, NarrationEvent(Scenario.NO_CAPSULE_ID))
        elif isinstance(exc, CapsuleNotFound):
            facts = {"id": exc.capsule_id, "max_id": exc.max_id}
            self._reply(NOT_FOUND, NarrationEvent(Scenario.CAPSULE_NOT_FOUND, facts))
        elif isinstance(exc, AlreadyUnlocked):
            facts = _capsule_facts(exc.capsule)
            self._reply(ALREADY_UNLOCKED, NarrationEvent(Scenario.CAPSULE_ALREADY_UNLOCKED, facts))
        elif isinstance(exc, TimeLocked):
            facts = {**_capsule_facts(exc.capsule), "time_remaining": exc.remaining_label}
            self._reply(time_locked(exc.remaining_label), NarrationEvent(Scenario.CAPSULE_FOUND_TIME_LOCKED, facts))
        elif isinstance(exc, ContractRevert):
            self._report_revert(exc, capsule_id)
        elif isinstance(exc, StorageFetchFailure):
            facts = {"id": capsule_id, "error": str(exc), "claimed": True}
            text = PAYLOAD_UNAVAILABLE.format(error=exc)
            if exc.content_id:
                text += PAYLOAD_LOCATION.format(content_id=exc.content_id)
            self._reply(text, NarrationEvent(Scenario.UNLOCK_ERROR, facts))
        elif isinstance(exc, DecryptionFailure):
            facts = {"id": exc.capsule_id, "error": str(exc), "claimed": True}
            self._reply(DECRYPTION_FAILED, NarrationEvent(Scenario.UNLOCK_ERROR, facts))
        else:
            facts = {"id": capsule_id, "error": str(exc)}
            self._reply(disturbance(str(exc)), NarrationEvent(Scenario.UNLOCK_ERROR, facts))

    def _report_revert(self, exc: ContractRevert, capsule_id: int | None) -> None:
        if exc.kind is RevertKind.TOO_EARLY:
            facts = {"id": capsule_id, "error": exc.reason}
            self._reply(TOO_EARLY, NarrationEvent(Scenario.UNLOCK_ERROR, facts))
        elif exc.kind is RevertKind.ALREADY_UNLOCKED:
            self._reply(ALREADY_UNLOCKED, NarrationEvent(Scenario.CAPSULE_ALREADY_UNLOCKED, {"id": capsule_id}))
        else:
            facts = {"id": capsule_id, "error": exc.reason}
            self._reply(disturbance(exc.reason or exc.kind.value), NarrationEvent(Scenario.UNLOCK_ERROR, facts))

    # Transcript helpers ------------------------------------------------
    def _track(self, capsule_id: int) -> None:
        if self._turn is not None:
            self._turn.capsule_id = capsule_id

    def _append(self, message: Message) -> None:
        self._messages.append(message)

    def _show_pending(self) -> None:
        if not any(message.role is MessageRole.THINKING for message in self._messages):
            self._append(Message(MessageRole.THINKING, ""))

    def _clear_pending(self) -> None:
        self._messages[:] = [message for message in self._messages if message.role is not MessageRole.THINKING]

    def _narration_history(self) -> list[dict[str, str]]:
        history: list[dict[str, str]] = []
        for message in self._messages:
            if message.role is MessageRole.THINKING:
                continue
            role = "user" if message.role is MessageRole.USER else "assistant"
            history.append({"role": role, "content": message.text})
        return history

    def _reply(self, text: str, event: NarrationEvent | None = None) -> None:
        self._clear_pending()
        if event is not None and self._narrator is not None:
            narrated = self._narrator.narrate(event, self._narration_history())
            if narrated:
                text = narrated
        message = Message(MessageRole.GUARDIAN, text)
        self._append(message)
        if self._turn is not None:
            self._turn.replies.append(message)
            if event is not None:
                self._turn.events.append(event)

    def _pause(self, seconds: float) -> None:
        if self._pacing_scale > 0:
            self._sleep(seconds * self._pacing_scale)


__all__ = ["GREETINGS", "GuardianSession", "TurnCommand", "TurnResult"]
