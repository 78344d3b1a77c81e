import asyncio
import logging
from typing import List, Optional, Sequence

from firebase_admin import exceptions, messaging

from ..config import Settings, settings as default_settings
from ..schemas import (
    INVALID_REGISTRATION_TOKEN,
    REGISTRATION_TOKEN_NOT_REGISTERED,
    DeliveryResult,
    NotificationPayload,
)

logger = logging.getLogger(__name__)


def _names_registration_token(error: exceptions.FirebaseError) -> bool:
    details = str(error)
    http_response = getattr(error, "http_response", None)
    if http_response is not None:
        details += " " + (getattr(http_response, "text", "") or "")
    return "registration token" in details.lower()


def classify_error(error: Optional[Exception]) -> str:
    """Map a firebase_admin send error onto an FCM error code."""
    if isinstance(error, messaging.UnregisteredError):
        return REGISTRATION_TOKEN_NOT_REGISTERED
    if isinstance(error, exceptions.InvalidArgumentError):
        # INVALID_ARGUMENT also covers payload problems, which say nothing about the token
        if _names_registration_token(error):
            return INVALID_REGISTRATION_TOKEN
        return "invalid-argument"
    if isinstance(error, messaging.SenderIdMismatchError):
        return "mismatched-credential"
    code = getattr(error, 'code', None)
    if code:
        return str(code).lower().replace('_', '-')
    return "unknown-error"


def build_multicast_message(tokens: Sequence[str], payload: NotificationPayload) -> messaging.MulticastMessage:
    content = payload.notification
    return messaging.MulticastMessage(
        tokens=list(tokens),
        notification=messaging.Notification(
            title=content.title,
            body=content.body,
        ),
        webpush=messaging.WebpushConfig(
            notification=messaging.WebpushNotification(
                title=content.title,
                body=content.body,
                icon=content.icon,
            ),
            fcm_options=messaging.WebpushFCMOptions(link=content.click_action) if content.click_action else None,
        ),
    )


class FcmDeliveryService:
    """Sends payloads through Firebase Cloud Messaging."""

    def __init__(self, settings: Optional[Settings] = None, app=None):
        self.settings = settings or default_settings
        self.app = app

    async def send_to_tokens(self, tokens: Sequence[str], payload: NotificationPayload) -> List[DeliveryResult]:
        results: List[DeliveryResult] = []
        batch_size = self.settings.fcm_batch_size

        # Batch tokens (max 500 per request)
        for i in range(0, len(tokens), batch_size):
            batch = list(tokens[i:i + batch_size])
            message = build_multicast_message(batch, payload)
            batch_response = await asyncio.to_thread(
                messaging.send_each_for_multicast, message, app=self.app
            )
            logger.info(
                f"Sent batch of {len(batch)} notifications: "
                f"{batch_response.success_count} succeeded, {batch_response.failure_count} failed"
            )
            for token, resp in zip(batch, batch_response.responses):
                if resp.success:
                    results.append(DeliveryResult(token=token))
                else:
                    results.append(DeliveryResult(
                        token=token,
                        error_code=classify_error(resp.exception),
                        error_message=str(resp.exception) if resp.exception else None,
                    ))
        return results
