"""Push notification fan-out to all of a user's registered devices."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

import httpx
from sqlalchemy.orm import Session

from kyc_admin.config import get_settings
from kyc_admin.models import UserFcmToken
from kyc_admin.services.fcm_auth import (
    AccessToken,
    AccessTokenCache,
    CredentialSigner,
    ServiceIdentity,
    TokenExchanger,
)
from kyc_admin.services.fcm_client import DeliveryOutcome, MessageDispatcher, NotificationMessage

logger = logging.getLogger(__name__)

# Shared across services when FCM_CACHE_ACCESS_TOKEN is enabled
_access_token_cache = AccessTokenCache()


class DeviceEndpointSource(Protocol):
    """Read-only lookup of a user's deliverable registration tokens."""

    def list_active_tokens(self, user_id: str) -> list[str]: ...


class DeviceTokenRepository:
    """Reads non-revoked FCM tokens from the database."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def list_active_tokens(self, user_id: str) -> list[str]:
        rows = (
            self.db.query(UserFcmToken.token)
            .filter(UserFcmToken.user_id == user_id, UserFcmToken.revoked_at.is_(None))
            .order_by(UserFcmToken.created_at)
            .all()
        )
        return [token for (token,) in rows]


@dataclass
class FanoutResult:
    """Per-device outcomes of one notification to one user."""

    user_id: str
    outcomes: list[DeliveryOutcome] = field(default_factory=list)

    @property
    def sent(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)


class NotificationService:
    """Service for sending push notifications through FCM."""

    def __init__(
        self,
        identity: ServiceIdentity,
        endpoints: DeviceEndpointSource,
        timeout: float = 10.0,
        max_concurrency: int = 10,
        token_cache: AccessTokenCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.signer = CredentialSigner(identity)
        self.exchanger = TokenExchanger()
        self.dispatcher = MessageDispatcher(identity.project_id)
        self.endpoints = endpoints
        self.timeout = timeout
        self.max_concurrency = max_concurrency
        self.token_cache = token_cache
        self._transport = transport

    async def get_access_token(self, client: httpx.AsyncClient) -> AccessToken:
        """Sign a fresh assertion and exchange it, or reuse the cached token.

        Raises:
            SigningError: if the assertion cannot be signed.
            TokenExchangeError: if the token endpoint refuses the assertion.
        """

        async def fetch() -> AccessToken:
            assertion = self.signer.sign()
            return await self.exchanger.exchange(client, assertion)

        if self.token_cache is not None:
            return await self.token_cache.get(fetch)
        return await fetch()

    async def notify_user(
        self,
        user_id: str,
        title: str,
        body: str,
        data: dict[str, str] | None = None,
    ) -> FanoutResult:
        """
        Send a push notification to every active device of a user.

        Failing devices are recorded in the result and never stop delivery
        to the others. A failed token lookup is logged and yields an empty
        result. Signing and token exchange errors propagate, since no device
        can be reached without a token.
        """
        result = FanoutResult(user_id=user_id)

        try:
            tokens = self.endpoints.list_active_tokens(user_id)
        except Exception as e:
            logger.error(f"Failed to load device tokens for user {user_id}: {e}")
            return result

        tokens = list(dict.fromkeys(tokens))
        if not tokens:
            logger.info(f"No active device tokens for user {user_id}")
            return result

        message = NotificationMessage(title=title, body=body, data=dict(data or {}))
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            access_token = await self.get_access_token(client)

            async def send_one(token: str) -> DeliveryOutcome:
                async with semaphore:
                    return await self.dispatcher.try_send(client, access_token, token, message)

            result.outcomes = list(await asyncio.gather(*(send_one(token) for token in tokens)))

        logger.info(f"Sent push to {result.sent}/{len(tokens)} devices for user {user_id}")
        return result


def get_notification_service(db: Session) -> NotificationService:
    """Get a notification service configured from settings."""
    settings = get_settings()
    return NotificationService(
        identity=settings.service_identity(),
        endpoints=DeviceTokenRepository(db),
        timeout=settings.fcm_http_timeout_seconds,
        max_concurrency=settings.fcm_max_concurrency,
        token_cache=_access_token_cache if settings.fcm_cache_access_token else None,
    )
