"""Identity providers — create (and compensate) the user behind a signup."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Protocol

import httpx
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from app.core.config import Settings
from app.core.errors import IdentityError
from app.core.security import create_jwt, hash_password
from app.models.user import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class IdentityUser:
    id: uuid.UUID
    email: str
    access_token: str | None = None


class IdentityProvider(Protocol):
    async def sign_up(self, email: str, password: str, metadata: dict) -> IdentityUser:
        """Create a user. Raises IdentityError with a user-facing message."""
        ...

    async def delete_user(self, user_id: uuid.UUID) -> None:
        """Remove a user created by sign_up. Raises IdentityError on failure."""
        ...


class LocalIdentityProvider:
    """Users stored in the platform database with Argon2 password hashes."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    async def sign_up(self, email: str, password: str, metadata: dict) -> IdentityUser:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise IdentityError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters"
            )

        user = User(
            email=email.strip().lower(),
            password_hash=hash_password(password),
            profile=json.dumps(metadata),
        )
        async with self._session_factory() as session:
            session.add(user)
            try:
                await session.commit()
            except IntegrityError as exc:
                raise IdentityError("User already registered") from exc

        token = create_jwt(subject=str(user.id))
        return IdentityUser(id=user.id, email=user.email, access_token=token)

    async def delete_user(self, user_id: uuid.UUID) -> None:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return
            await session.delete(user)
            await session.commit()


class HttpIdentityProvider:
    """Remote GoTrue-compatible auth service reached over HTTP."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={
                "apikey": self._api_key,
                "Authorization": f"Bearer {self._api_key}",
            },
        )

    async def sign_up(self, email: str, password: str, metadata: dict) -> IdentityUser:
        try:
            async with self._client() as client:
                resp = await client.post(
                    "/auth/v1/signup",
                    json={"email": email, "password": password, "data": metadata},
                )
        except httpx.HTTPError as exc:
            logger.warning("Identity provider unreachable at %s", self.base_url)
            raise IdentityError("Identity provider is unavailable") from exc

        body = _json_or_empty(resp)
        if resp.status_code >= 400:
            raise IdentityError(_error_message(body, resp.status_code))

        # With email confirmation on, the user comes back bare; otherwise with a session
        user = body.get("user") or body
        session = body.get("session") or {}
        try:
            user_id = uuid.UUID(str(user["id"]))
        except (KeyError, ValueError) as exc:
            raise IdentityError("Identity provider returned no user") from exc

        return IdentityUser(
            id=user_id,
            email=user.get("email", email),
            access_token=session.get("access_token") or body.get("access_token"),
        )

    async def delete_user(self, user_id: uuid.UUID) -> None:
        try:
            async with self._client() as client:
                resp = await client.delete(f"/auth/v1/admin/users/{user_id}")
        except httpx.HTTPError as exc:
            raise IdentityError("Identity provider is unavailable") from exc

        if resp.status_code >= 400 and resp.status_code != 404:
            raise IdentityError(_error_message(_json_or_empty(resp), resp.status_code))


def _json_or_empty(resp: httpx.Response) -> dict:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _error_message(body: dict, status_code: int) -> str:
    for key in ("msg", "error_description", "message", "error"):
        if body.get(key):
            return str(body[key])
    return f"Identity provider returned HTTP {status_code}"


def build_identity_provider(settings: Settings, session_factory: sessionmaker) -> IdentityProvider:
    if settings.identity_provider == "http":
        if not settings.identity_url:
            raise RuntimeError("IDENTITY_URL is not configured")
        return HttpIdentityProvider(
            settings.identity_url,
            settings.identity_api_key,
            timeout=settings.identity_timeout_seconds,
        )
    return LocalIdentityProvider(session_factory)
