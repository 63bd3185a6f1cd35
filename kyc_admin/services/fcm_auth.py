"""Service-account authentication for Firebase Cloud Messaging.

A signed RS256 assertion is built from the service account key and exchanged
at Google's OAuth2 token endpoint (JWT-bearer grant) for a short-lived access
token that authorizes calls to the FCM v1 send endpoint.
"""

import base64
import binascii
import json
import logging
import re
import textwrap
import asyncio
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk
from jose.constants import ALGORITHMS
from jose.exceptions import JWKError
from jose.utils import base64url_encode

from kyc_admin.services.errors import ConfigurationError, SigningError, TokenExchangeError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"
MESSAGING_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"
ASSERTION_LIFETIME_SECONDS = 3600
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600

_PEM_ARMOR = re.compile(r"-----(?:BEGIN|END) ([A-Z0-9 ]+)-----")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ServiceIdentity:
    """Credentials the backend uses to authenticate itself to FCM."""

    project_id: str
    client_email: str
    private_key: str = field(repr=False)

    def __post_init__(self) -> None:
        for name in ("project_id", "client_email", "private_key"):
            value = getattr(self, name)
            if not value or not str(value).strip():
                raise ConfigurationError(f"Service identity is missing {name}")
        # Keys stored in env files carry literal "\n" sequences
        object.__setattr__(self, "private_key", self.private_key.replace("\\n", "\n"))


@dataclass(frozen=True)
class SignedAssertion:
    """A compact RS256 JWT used as the JWT-bearer grant assertion."""

    header: dict[str, Any]
    claims: dict[str, Any]
    signing_input: str
    signature: str

    @property
    def compact(self) -> str:
        """The ``header.claims.signature`` serialization."""
        return f"{self.signing_input}.{self.signature}"

    @property
    def issued_at(self) -> int:
        return self.claims["iat"]

    @property
    def expires_at(self) -> int:
        return self.claims["exp"]


@dataclass(frozen=True)
class AccessToken:
    """Bearer token returned by the OAuth2 token endpoint."""

    value: str = field(repr=False)
    expires_at: float

    def expires_within(self, seconds: float) -> bool:
        """Check if the token expires in less than ``seconds``."""
        return time.time() + seconds >= self.expires_at


def _b64_json(data: dict[str, Any]) -> str:
    return base64url_encode(json.dumps(data, separators=(",", ":")).encode("utf-8")).decode("ascii")


def load_private_key(pem: str) -> Any:
    """Parse an RSA private key from PEM text.

    The armor lines and all whitespace are stripped and the base64 body is
    decoded before the key is handed to the signing backend, so keys whose
    line breaks were mangled by env files still load.

    Raises:
        ConfigurationError: if the key is empty, not base64, or not an RSA
            private key.
    """
    if not pem or not pem.strip():
        raise ConfigurationError("Private key is empty")

    labels = set(_PEM_ARMOR.findall(pem))
    if len(labels) > 1:
        raise ConfigurationError(f"Private key has mismatched PEM armor: {sorted(labels)}")
    label = labels.pop() if labels else "PRIVATE KEY"
    if "PRIVATE KEY" not in label:
        raise ConfigurationError(f"Expected a private key, got PEM block '{label}'")

    body = _WHITESPACE.sub("", _PEM_ARMOR.sub("", pem))
    try:
        der = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigurationError(f"Private key is not valid base64: {e}") from e
    if not der:
        raise ConfigurationError("Private key body is empty")

    try:
        parsed = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise ConfigurationError(f"Private key could not be loaded: {e}") from e
    if not isinstance(parsed, rsa.RSAPrivateKey):
        raise ConfigurationError(f"Expected an RSA private key, got {type(parsed).__name__}")

    armored = "\n".join(
        [f"-----BEGIN {label}-----", *textwrap.wrap(body, 64), f"-----END {label}-----"]
    )
    try:
        return jwk.construct(armored, algorithm=ALGORITHMS.RS256)
    except JWKError as e:
        raise ConfigurationError(f"Private key could not be loaded: {e}") from e


class CredentialSigner:
    """Builds signed assertions for a service identity."""

    HEADER = {"alg": ALGORITHMS.RS256, "typ": "JWT"}

    def __init__(self, identity: ServiceIdentity) -> None:
        self.identity = identity
        self._key = load_private_key(identity.private_key)

    def sign(self, issued_at: int | None = None) -> SignedAssertion:
        """Create a fresh assertion valid for one hour from ``issued_at``.

        Args:
            issued_at: Unix time in seconds; defaults to now.

        Raises:
            SigningError: if the signing backend rejects the key or message.
        """
        iat = int(time.time()) if issued_at is None else int(issued_at)
        claims = {
            "iss": self.identity.client_email,
            "scope": MESSAGING_SCOPE,
            "aud": TOKEN_URL,
            "iat": iat,
            "exp": iat + ASSERTION_LIFETIME_SECONDS,
        }
        signing_input = f"{_b64_json(self.HEADER)}.{_b64_json(claims)}"

        try:
            raw_signature = self._key.sign(signing_input.encode("ascii"))
        except (JWKError, ValueError, TypeError) as e:
            raise SigningError(f"Failed to sign assertion: {e}") from e

        return SignedAssertion(
            header=dict(self.HEADER),
            claims=claims,
            signing_input=signing_input,
            signature=base64url_encode(raw_signature).decode("ascii"),
        )


class TokenExchanger:
    """Exchanges signed assertions for access tokens."""

    def __init__(self, token_url: str = TOKEN_URL) -> None:
        self.token_url = token_url

    async def exchange(self, client: httpx.AsyncClient, assertion: SignedAssertion) -> AccessToken:
        """POST the assertion to the token endpoint and return the access token.

        Raises:
            TokenExchangeError: on transport failure, a non-2xx status, or a
                response without ``access_token``.
        """
        try:
            response = await client.post(
                self.token_url,
                data={"grant_type": GRANT_TYPE, "assertion": assertion.compact},
            )
        except httpx.HTTPError as e:
            raise TokenExchangeError(f"Token request failed: {e}") from e

        if not response.is_success:
            raise TokenExchangeError(
                f"Token endpoint returned {response.status_code}: {response.text}",
                status_code=response.status_code,
                response_text=response.text,
            )

        try:
            payload = response.json()
            value = payload["access_token"]
            expires_in = float(payload.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise TokenExchangeError(
                f"Malformed token response: {e}",
                status_code=response.status_code,
                response_text=response.text,
            ) from e

        return AccessToken(value=value, expires_at=time.time() + expires_in)


class AccessTokenCache:
    """Process-wide holder for one access token until shortly before it expires.

    Callers are serialized on one ``asyncio.Lock`` across the freshness check,
    the fetch and the store, so a stale token is replaced by exactly one fetch.
    Celery runs every task in a new event loop, so the lock is recreated when
    the running loop changes.
    """

    def __init__(self, refresh_margin_seconds: float = 60.0) -> None:
        self.refresh_margin_seconds = refresh_margin_seconds
        self._token: AccessToken | None = None
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None
        self._guard = threading.Lock()

    def _loop_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        with self._guard:
            if self._lock is None or self._lock_loop is not loop:
                self._lock = asyncio.Lock()
                self._lock_loop = loop
            return self._lock

    async def get(self, fetch: Callable[[], Awaitable[AccessToken]]) -> AccessToken:
        async with self._loop_lock():
            token = self._token
            if token is not None and not token.expires_within(self.refresh_margin_seconds):
                return token

            logger.debug("Fetching a new FCM access token")
            token = await fetch()
            self._token = token
            return token
