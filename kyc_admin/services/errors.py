"""Exceptions raised by the KYC admin services."""


class PushError(Exception):
    """Base class for push delivery failures."""


class ConfigurationError(PushError):
    """The push service identity is missing or unusable."""


class SigningError(PushError):
    """The signed assertion could not be produced."""


class TokenExchangeError(PushError):
    """The OAuth2 token endpoint did not return an access token."""

    def __init__(self, message: str, status_code: int | None = None, response_text: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text


class DeliveryError(PushError):
    """A push message could not be delivered to one device endpoint."""

    def __init__(
        self,
        message: str,
        token: str,
        status_code: int | None = None,
        response_text: str = "",
    ) -> None:
        super().__init__(message)
        self.token = token
        self.status_code = status_code
        self.response_text = response_text

    @property
    def is_transport_error(self) -> bool:
        """True when no HTTP response was received at all."""
        return self.status_code is None


class SubmissionNotFoundError(Exception):
    """The requested KYC submission does not exist."""


class StorageError(Exception):
    """The object storage API rejected or failed a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
