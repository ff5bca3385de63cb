"""Popup messaging bridge.

Client-side half of the Google sign-in handshake: opens the popup, listens
for the message posted by the terminal page and reconciles local session
state. Each attempt is an explicit state machine with exactly one terminal
transition, raced by a message listener, a close-detection poll and a
timeout.
"""

import asyncio
import contextlib
import json
import secrets
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from urllib.parse import urlencode, urlsplit

import httpx
import logfire

from tally.client.error import BridgeError, PopupBlockedError
from tally.client.probe import probe_configuration
from tally.client.storage import (
    AUTH_IN_PROGRESS_KEY,
    FORCE_SELECTION_KEY,
    TOKEN_KEY,
    USER_KEY,
    ClientStorage,
)

POPUP_WIDTH = 500
POPUP_HEIGHT = 600
POLL_INTERVAL_SECONDS = 1.0
HANDSHAKE_TIMEOUT_SECONDS = 60.0

POPUP_BLOCKED_MESSAGE = "Please enable popups for this website to use Google Sign In"


def origin_of(url: str) -> str:
    """``scheme://host[:port]`` of a URL, as browsers report ``event.origin``."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


@dataclass(frozen=True)
class MessageEvent:
    """A cross-window message as delivered to the opener."""

    origin: str
    data: Any


class HandshakeStatus(str, Enum):
    """Lifecycle of one popup attempt."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    CLOSED = "closed"
    TIMED_OUT = "timed_out"
    BLOCKED = "blocked"
    IN_PROGRESS = "in_progress"


@dataclass
class HandshakeOutcome:
    """Terminal result of an attempt."""

    status: HandshakeStatus
    unique_id: str
    token: str | None = None
    user: dict[str, Any] | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is HandshakeStatus.COMPLETED


class Popup(ABC):
    """Handle on an opened popup window."""

    @abstractmethod
    def check_access(self) -> None:
        """Read a cross-window property.

        Raises:
            PopupAccessError: Once the popup is closed or no longer readable
        """

    @abstractmethod
    def close(self) -> None:
        pass


MessageListener = Callable[[MessageEvent], Any]


class OpenerWindow(ABC):
    """The application window that starts the handshake."""

    @abstractmethod
    def open_popup(self, url: str, name: str, features: str) -> Popup | None:
        """Open a popup; ``None`` means the browser blocked it."""

    @abstractmethod
    def add_message_listener(self, listener: MessageListener) -> None:
        pass

    @abstractmethod
    def remove_message_listener(self, listener: MessageListener) -> None:
        pass

    @abstractmethod
    def alert(self, message: str) -> None:
        pass

    @abstractmethod
    def reload(self) -> None:
        pass


@dataclass
class HandshakeAttempt:
    """State machine for one popup handshake.

    ``on_message``, ``on_closed_detected`` and ``on_timeout`` each return
    True only if they performed the terminal transition; afterwards every
    call is a no-op.
    """

    unique_id: str
    allowed_origins: frozenset[str]
    storage: ClientStorage
    window: OpenerWindow
    popup: Popup | None = None
    status: HandshakeStatus = field(default=HandshakeStatus.PENDING, init=False)
    outcome: HandshakeOutcome | None = field(default=None, init=False)
    _done: asyncio.Event = field(default_factory=asyncio.Event, init=False, repr=False)

    @property
    def is_terminal(self) -> bool:
        return self.status is not HandshakeStatus.PENDING

    def _finish(self, outcome: HandshakeOutcome) -> bool:
        if self.is_terminal:
            return False
        self.status = outcome.status
        self.outcome = outcome
        self._done.set()
        logfire.info(
            "Handshake attempt finished",
            unique_id=self.unique_id,
            status=outcome.status.value,
        )
        return True

    def on_message(self, event: MessageEvent) -> bool:
        """Handle a message posted to the opener."""
        if self.is_terminal:
            return False
        if event.origin not in self.allowed_origins:
            logfire.debug("Ignoring message from untrusted origin", origin=event.origin)
            return False

        data = event.data
        if not isinstance(data, dict):
            return False
        message_id = data.get("uniqueId")
        if message_id is not None and message_id != self.unique_id:
            logfire.debug(
                "Ignoring message for another attempt",
                unique_id=self.unique_id,
                message_unique_id=message_id,
            )
            return False

        token = data.get("token")
        if isinstance(token, str) and token:
            user = data.get("user") if isinstance(data.get("user"), dict) else None
            self.storage.set(TOKEN_KEY, token)
            if user is not None:
                self.storage.set(USER_KEY, json.dumps(user))
            self._finish(
                HandshakeOutcome(
                    status=HandshakeStatus.COMPLETED,
                    unique_id=self.unique_id,
                    token=token,
                    user=user,
                )
            )
            self.window.reload()
            return True

        if data.get("cancelled") or data.get("canceled"):
            return self._finish(
                HandshakeOutcome(
                    status=HandshakeStatus.CANCELLED, unique_id=self.unique_id
                )
            )

        return False

    def on_closed_detected(self) -> bool:
        """Popup went away without delivering a message."""
        return self._finish(
            HandshakeOutcome(status=HandshakeStatus.CLOSED, unique_id=self.unique_id)
        )

    def on_timeout(self) -> bool:
        """Give up on the attempt and try to close the popup."""
        finished = self._finish(
            HandshakeOutcome(status=HandshakeStatus.TIMED_OUT, unique_id=self.unique_id)
        )
        if finished and self.popup is not None:
            try:
                self.popup.close()
            except Exception as e:
                logfire.debug(
                    "Could not close popup after timeout",
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return finished

    async def wait(self) -> HandshakeOutcome:
        await self._done.wait()
        if self.outcome is None:
            raise BridgeError("handshake finished without an outcome")
        return self.outcome


class PopupBridge:
    """Runs popup handshakes for one opener window."""

    def __init__(
        self,
        api_url: str,
        client_url: str,
        window: OpenerWindow,
        storage: ClientStorage,
        transport: httpx.AsyncBaseTransport | None = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        timeout: float = HANDSHAKE_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the bridge.

        Args:
            api_url: API base URL (serves ``/handshake/start``)
            client_url: This application's URL
            window: Opener window abstraction
            storage: Persistent client storage
            transport: Optional httpx transport for the capability probe
            poll_interval: Seconds between close-detection checks
            timeout: Seconds before an attempt is abandoned
        """
        self.api_url = api_url.rstrip("/")
        self.window = window
        self.storage = storage
        self.transport = transport
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.allowed_origins = frozenset({origin_of(client_url), origin_of(api_url)})
        self._active_id: str | None = None

    def start_url(self, unique_id: str, force_selection: bool) -> str:
        params = {
            "prompt": "select_account",
            "access_type": "online",
            "include_granted_scopes": "false",
            "unique": unique_id,
        }
        if force_selection:
            params["force_selection"] = "true"
        return f"{self.api_url}/handshake/start?{urlencode(params)}"

    def _open(self, unique_id: str, force_selection: bool) -> Popup:
        popup = self.window.open_popup(
            self.start_url(unique_id, force_selection),
            f"GoogleAuth_{unique_id}",
            f"width={POPUP_WIDTH},height={POPUP_HEIGHT},"
            "menubar=no,toolbar=no,location=no,status=no",
        )
        if popup is None:
            raise PopupBlockedError("Sign-in popup was blocked")
        return popup

    async def _watch_popup(self, attempt: HandshakeAttempt, popup: Popup) -> None:
        while not attempt.is_terminal:
            await asyncio.sleep(self.poll_interval)
            try:
                popup.check_access()
            except Exception as e:
                # Any failure to read the popup means it is gone
                logfire.debug(
                    "Popup no longer readable",
                    unique_id=attempt.unique_id,
                    error_type=type(e).__name__,
                )
                attempt.on_closed_detected()
                return

    async def begin_handshake(self, force_selection: bool = False) -> HandshakeOutcome:
        """Run one sign-in attempt to completion.

        A force-selection flag left by ``sign_out`` is consumed here.

        Only one attempt runs per bridge; a call made while another is in
        flight returns ``IN_PROGRESS`` without opening a popup.

        Returns:
            Terminal outcome; never left pending
        """
        if self._active_id is not None:
            logfire.info(
                "Sign-in already in progress, ignoring request",
                unique_id=self._active_id,
            )
            return HandshakeOutcome(
                status=HandshakeStatus.IN_PROGRESS, unique_id=self._active_id
            )

        unique_id = secrets.token_hex(6)
        self._active_id = unique_id
        try:
            return await self._run_handshake(unique_id, force_selection)
        finally:
            self._active_id = None

    async def _run_handshake(
        self, unique_id: str, force_selection: bool
    ) -> HandshakeOutcome:
        if self.storage.pop(FORCE_SELECTION_KEY) == "true":
            force_selection = True

        probe = await probe_configuration(self.api_url, transport=self.transport)

        with logfire.span(
            "popup_handshake",
            unique_id=unique_id,
            force_selection=force_selection,
            server_configured=probe.configured,
        ):
            try:
                popup = self._open(unique_id, force_selection)
            except PopupBlockedError:
                logfire.warn("Sign-in popup blocked", unique_id=unique_id)
                self.window.alert(POPUP_BLOCKED_MESSAGE)
                return HandshakeOutcome(
                    status=HandshakeStatus.BLOCKED, unique_id=unique_id
                )

            self.storage.set(
                AUTH_IN_PROGRESS_KEY, datetime.now(timezone.utc).isoformat()
            )
            attempt = HandshakeAttempt(
                unique_id=unique_id,
                allowed_origins=self.allowed_origins,
                storage=self.storage,
                window=self.window,
                popup=popup,
            )
            listener = attempt.on_message
            self.window.add_message_listener(listener)
            watcher = asyncio.create_task(self._watch_popup(attempt, popup))

            try:
                return await asyncio.wait_for(attempt.wait(), timeout=self.timeout)
            except asyncio.TimeoutError:
                attempt.on_timeout()
                return await attempt.wait()
            finally:
                watcher.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await watcher
                self.window.remove_message_listener(listener)
                self.storage.remove(AUTH_IN_PROGRESS_KEY)

    def sign_out(self) -> None:
        """Forget the session; the next sign-in must re-select an account."""
        self.storage.set(FORCE_SELECTION_KEY, "true")
        self.storage.remove(TOKEN_KEY)
        self.storage.remove(USER_KEY)
        self.storage.remove(AUTH_IN_PROGRESS_KEY)
        logfire.info("Signed out; account selection forced on next sign-in")
