from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Union

import aiosqlite

from api import endpoints
from api.client import ApiClient, ApiError
from api.models import User
from api.storage import CredentialStore
from services.base import Notifier, OperationResult, Service, error_message
from utils.logger import get_logger

_logger = get_logger(__name__)


# ---------------------------
# Session states
# ---------------------------


@dataclass(frozen=True)
class Anonymous:
    pass


@dataclass(frozen=True)
class Authenticating:
    pass


@dataclass(frozen=True)
class Authenticated:
    user: User
    token: str


@dataclass(frozen=True)
class AuthFailed:
    message: str


SessionState = Union[Anonymous, Authenticating, Authenticated, AuthFailed]

SessionHook = Callable[[SessionState], Awaitable[None]]


# ---------------------------
# Transitions
# ---------------------------


def begin_auth(state: SessionState) -> SessionState:
    """Starting a login/signup discards any previous error."""
    return Authenticating()


def auth_succeeded(state: SessionState, user: User, token: str) -> SessionState:
    return Authenticated(user=user, token=token)


def auth_failed(state: SessionState, message: str) -> SessionState:
    return AuthFailed(message=message)


def logged_out(state: SessionState) -> SessionState:
    return Anonymous()


def error_cleared(state: SessionState) -> SessionState:
    if isinstance(state, AuthFailed):
        return Anonymous()
    return state


@dataclass(frozen=True)
class SignupProfile:
    first_name: str
    last_name: str
    email: str
    password: str


class SessionStore(Service):
    """
    Owns the single authenticated identity of the running client.

    Anonymous -> Authenticating -> Authenticated | AuthFailed
    Authenticated -> Anonymous (logout)
    AuthFailed -> Anonymous (clear_error)

    Hooks registered with `subscribe` are awaited after every transition.
    """

    def __init__(
        self,
        client: ApiClient,
        storage: CredentialStore,
        notify: Optional[Notifier] = None,
    ) -> None:
        super().__init__(notify)
        self._client = client
        self._storage = storage
        self._state: SessionState = Anonymous()
        self._hooks: List[SessionHook] = []
        self._restored = False

    # --- read side ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> Optional[User]:
        return self._state.user if isinstance(self._state, Authenticated) else None

    @property
    def token(self) -> Optional[str]:
        return self._state.token if isinstance(self._state, Authenticated) else None

    @property
    def error(self) -> Optional[str]:
        return self._state.message if isinstance(self._state, AuthFailed) else None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.token is not None

    @property
    def busy(self) -> bool:
        return isinstance(self._state, Authenticating) or super().busy

    def subscribe(self, hook: SessionHook) -> None:
        self._hooks.append(hook)

    async def _transition(self, new_state: SessionState) -> None:
        self._state = new_state
        self._client.set_token(self.token)
        for hook in self._hooks:
            await hook(new_state)

    # --- operations ---

    async def restore(self) -> bool:
        """
        Load the persisted (token, user) pair without contacting the server.
        Corrupt data is discarded and logged; the session stays anonymous.
        Storage is read on the first call only, later calls return False.
        """
        if self._restored:
            return False
        self._restored = True

        try:
            token, user_json = await self._storage.load()
        except (aiosqlite.Error, OSError) as e:
            _logger.error(f"Could not read persisted credentials: {e}")
            return False
        if token is None and user_json is None:
            return False

        try:
            if not token or not user_json:
                raise ValueError("only one of token/user was persisted")
            user = User.from_json(json.loads(user_json))
        except ValueError as e:  # json.JSONDecodeError is a ValueError
            _logger.error(f"Error loading user from local storage: {e}")
            await self._forget()
            return False

        await self._transition(auth_succeeded(self._state, user, token))
        _logger.info(f"Session restored for {user.email}")
        return True

    async def login(self, email: str, password: str) -> OperationResult:
        return await self._authenticate(
            endpoints.login(self._client, email, password),
            success_message="Login successful!",
            fallback_error="Login failed",
        )

    async def signup(self, profile: SignupProfile) -> OperationResult:
        return await self._authenticate(
            endpoints.signup(
                self._client,
                profile.first_name,
                profile.last_name,
                profile.email,
                profile.password,
            ),
            success_message="Account created successfully!",
            fallback_error="Signup failed",
        )

    async def _authenticate(
        self, call: Awaitable, success_message: str, fallback_error: str
    ) -> OperationResult:
        if isinstance(self._state, Authenticated):
            # the previous identity is gone whatever this attempt returns
            await self._forget()
        await self._transition(begin_auth(self._state))
        try:
            user, token = await call
        except ApiError as e:
            return await self._fail(e.message or fallback_error)
        except ValueError as e:
            _logger.error(f"Malformed auth response: {e}")
            return await self._fail(fallback_error)

        await self._persist(user, token)
        await self._transition(auth_succeeded(self._state, user, token))
        self._info(success_message)
        return OperationResult.ok(user)

    async def _fail(self, message: str) -> OperationResult:
        await self._transition(auth_failed(self._state, message))
        self._error(message)
        return OperationResult.fail(message)

    async def _persist(self, user: User, token: str) -> None:
        # the in-memory session stays valid even if the file can't be written
        try:
            await self._storage.save(token, json.dumps(user.to_json()))
        except (aiosqlite.Error, OSError) as e:
            _logger.error(f"Could not persist credentials: {e}")

    async def _forget(self) -> None:
        try:
            await self._storage.clear()
        except (aiosqlite.Error, OSError) as e:
            _logger.error(f"Could not clear persisted credentials: {e}")

    async def logout(self) -> OperationResult:
        """Never contacts the server, there is no server side session."""
        await self._forget()
        await self._transition(logged_out(self._state))
        self._info("Logged out successfully!")
        return OperationResult.ok()

    async def clear_error(self) -> None:
        new_state = error_cleared(self._state)
        if new_state is not self._state:
            await self._transition(new_state)

    async def refresh_profile(self) -> OperationResult:
        """Replace the held user with the server's copy (GET /auth/profile)."""
        if not self.is_authenticated:
            return OperationResult.fail("Not signed in")

        token = self.token
        with self._track():
            try:
                user = await endpoints.get_profile(self._client)
            except (ApiError, ValueError) as e:
                return OperationResult.fail(error_message(e, "Failed to load profile"))

        # a logout or re-login while the request was out wins
        if self.token != token:
            return OperationResult.fail("Session changed")

        await self._persist(user, token)
        await self._transition(auth_succeeded(self._state, user, token))
        return OperationResult.ok(user)
