"""
Guard Session
Client-side session holder: token, cached profile and permission manifest.

The cached profile is never trusted indefinitely. It is re-fetched from
``/me`` once older than the revalidation interval and after any 403, so a
role changed on the server shows up in the UI on the next render.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import httpx
import structlog

from medspa.core.config import settings
from medspa.guard.navigation import NavigationGuard

logger = structlog.get_logger()


class GuardOutcome(str, Enum):
    ALLOWED = "allowed"
    # 401: local session cleared, the user must sign in again
    REAUTHENTICATE = "reauthenticate"
    # 403: show the access-restricted screen
    ACCESS_RESTRICTED = "access-restricted"


@dataclass(frozen=True)
class GuardResult:
    outcome: GuardOutcome
    status_code: int
    data: Any = None
    reason: Optional[str] = None
    message: Optional[str] = None

    @property
    def authorized(self) -> bool:
        return self.outcome == GuardOutcome.ALLOWED


class SessionExpired(Exception):
    """Raised when an operation needs a session and there is none"""


class GuardSession:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_prefix: str = settings.API_V1_PREFIX,
        revalidate_seconds: float = settings.GUARD_REVALIDATE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._api_prefix = api_prefix.rstrip("/")
        self._revalidate_seconds = revalidate_seconds
        self._clock = clock

        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self.profile: Optional[dict] = None
        self._manifest: Optional[dict] = None
        self._validated_at: Optional[float] = None
        self._stale = False

    # -- session lifecycle -----------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    @property
    def role(self) -> Optional[str]:
        return self.profile["role"] if self.profile else None

    def _url(self, path: str) -> str:
        return f"{self._api_prefix}/{path.lstrip('/')}"

    def _headers(self) -> dict:
        if not self.access_token:
            raise SessionExpired("Not signed in")
        return {"Authorization": f"Bearer {self.access_token}"}

    def clear(self) -> None:
        if self.profile:
            logger.info("Guard session cleared", user_id=self.profile.get("id"))
        self.access_token = None
        self.refresh_token = None
        self.profile = None
        self._manifest = None
        self._validated_at = None
        self._stale = False

    async def login(self, email: str, password: str) -> GuardResult:
        response = await self._client.post(self._url("/auth/login"), json={"email": email, "password": password})
        if response.status_code != 200:
            body = self._error_body(response)
            return GuardResult(
                GuardOutcome.REAUTHENTICATE, response.status_code, reason=body.get("error"), message=body.get("message")
            )

        payload = response.json()
        self.access_token = payload["tokens"]["access_token"]
        self.refresh_token = payload["tokens"]["refresh_token"]
        # Display copy only; the manifest decides what is shown
        self.profile = payload["user"]
        await self.revalidate(force=True)
        return GuardResult(GuardOutcome.ALLOWED, response.status_code, data=self.profile)

    async def logout(self) -> None:
        if self.access_token:
            await self._client.post(self._url("/auth/logout"), headers=self._headers())
        self.clear()

    # -- revalidation ----------------------------------------------------------

    def needs_revalidation(self) -> bool:
        if self._stale or self._validated_at is None or self._manifest is None:
            return True
        return self._clock() - self._validated_at >= self._revalidate_seconds

    async def revalidate(self, force: bool = False) -> dict:
        """
        Re-fetch profile and permission manifest from the server

        Raises:
            SessionExpired: the server rejected the token; the session is cleared
        """
        if not force and not self.needs_revalidation():
            return self.profile

        headers = self._headers()
        me = await self._client.get(self._url("/me"), headers=headers)
        if me.status_code == 401:
            self.clear()
            raise SessionExpired("Session rejected by server")
        me.raise_for_status()

        manifest = await self._client.get(self._url("/me/permissions"), headers=headers)
        if manifest.status_code == 401:
            self.clear()
            raise SessionExpired("Session rejected by server")
        manifest.raise_for_status()

        previous_role = self.role
        self.profile = me.json()
        self._manifest = manifest.json()
        self._validated_at = self._clock()
        self._stale = False

        if previous_role and previous_role != self.role:
            logger.info("Role changed since last validation", previous_role=previous_role, role=self.role)
        return self.profile

    async def navigator(self) -> NavigationGuard:
        """Navigation guard built from a fresh-enough manifest"""
        await self.revalidate()
        return NavigationGuard(self._manifest)

    async def can_navigate(self, route: str) -> bool:
        return (await self.navigator()).can_navigate(route)

    # -- API calls -------------------------------------------------------------

    @staticmethod
    def _error_body(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    async def request(self, method: str, path: str, **kwargs: Any) -> GuardResult:
        """
        Call the API with the session token and classify the outcome

        401 clears the session. 403 marks the cached profile stale so the
        next render re-fetches it.
        """
        headers = {**kwargs.pop("headers", {}), **self._headers()}
        response = await self._client.request(method, self._url(path), headers=headers, **kwargs)

        if response.status_code == 401:
            body = self._error_body(response)
            logger.info("Server rejected session", path=path, reason=body.get("error"))
            self.clear()
            return GuardResult(
                GuardOutcome.REAUTHENTICATE, 401, reason=body.get("error"), message=body.get("message")
            )

        if response.status_code == 403:
            body = self._error_body(response)
            logger.info("Access restricted", path=path, reason=body.get("error"), role=self.role)
            self._stale = True
            return GuardResult(
                GuardOutcome.ACCESS_RESTRICTED, 403, reason=body.get("error"), message=body.get("message")
            )

        data = None
        if response.content:
            try:
                data = response.json()
            except ValueError:
                data = response.text
        return GuardResult(GuardOutcome.ALLOWED, response.status_code, data=data)
