"""FCM HTTP v1 message dispatch."""

import logging
from dataclasses import dataclass, field

import httpx

from kyc_admin.services.errors import DeliveryError
from kyc_admin.services.fcm_auth import AccessToken

logger = logging.getLogger(__name__)

SEND_URL_TEMPLATE = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"

# Routes a tap on the notification to the app's notification-click handler
CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"


@dataclass
class NotificationMessage:
    """Content of one push notification."""

    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)
    click_action: str = CLICK_ACTION

    def to_fcm(self, token: str) -> dict:
        """Build the FCM v1 request body for one registration token."""
        return {
            "message": {
                "token": token,
                "notification": {"title": self.title, "body": self.body},
                "data": {key: str(value) for key, value in self.data.items()},
                "android": {"notification": {"click_action": self.click_action}},
                "apns": {"payload": {"aps": {"category": self.click_action}}},
            }
        }


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of sending to one device endpoint."""

    token: str
    success: bool
    status_code: int | None = None
    error: str | None = None
    message_name: str | None = None


class MessageDispatcher:
    """Sends notifications to single device endpoints."""

    def __init__(self, project_id: str) -> None:
        self.project_id = project_id
        self.send_url = SEND_URL_TEMPLATE.format(project_id=project_id)

    async def send(
        self,
        client: httpx.AsyncClient,
        access_token: AccessToken,
        token: str,
        message: NotificationMessage,
    ) -> httpx.Response:
        """Send ``message`` to ``token`` and return the provider response.

        Raises:
            DeliveryError: on a non-2xx response (with status and body) or a
                transport failure (without status).
        """
        try:
            response = await client.post(
                self.send_url,
                headers={"Authorization": f"Bearer {access_token.value}"},
                json=message.to_fcm(token),
            )
        except httpx.HTTPError as e:
            raise DeliveryError(f"FCM request failed: {e}", token=token) from e

        if not response.is_success:
            raise DeliveryError(
                f"FCM v1 error {response.status_code}: {response.text}",
                token=token,
                status_code=response.status_code,
                response_text=response.text,
            )

        return response

    async def try_send(
        self,
        client: httpx.AsyncClient,
        access_token: AccessToken,
        token: str,
        message: NotificationMessage,
    ) -> DeliveryOutcome:
        """Send and report the result instead of raising on delivery failure."""
        try:
            response = await self.send(client, access_token, token, message)
        except DeliveryError as e:
            logger.error(f"FCM delivery failed for token {_mask(token)}: {e}")
            return DeliveryOutcome(
                token=token,
                success=False,
                status_code=e.status_code,
                error=str(e),
            )
        return DeliveryOutcome(
            token=token,
            success=True,
            status_code=response.status_code,
            message_name=_message_name(response),
        )


def _message_name(response: httpx.Response) -> str | None:
    try:
        return response.json().get("name")
    except (ValueError, AttributeError):
        return None


def _mask(token: str) -> str:
    return f"{token[:8]}..." if len(token) > 12 else token
