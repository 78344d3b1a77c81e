import asyncio
import logging
from typing import List, Optional, Sequence

from ..config import Settings, settings as default_settings
from ..interfaces import DeliveryService, TokenRegistry
from ..schemas import (
    DeliveryResult,
    DispatchReport,
    Message,
    NotificationContent,
    NotificationPayload,
)

logger = logging.getLogger(__name__)

ELLIPSIS = "..."


def truncate_body(text: Optional[str], max_length: int = 100) -> str:
    """Shorten `text` to `max_length` characters, ending in an ellipsis when cut."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length - len(ELLIPSIS)] + ELLIPSIS


def build_notification_payload(message: Message, settings: Optional[Settings] = None) -> NotificationPayload:
    """
    Build the push payload announcing a new chat message.

    Args:
        message: The message that was just written

    Returns:
        NotificationPayload with title, body, icon and click action
    """
    settings = settings or default_settings
    kind = "a message" if message.text else "an image"
    return NotificationPayload(
        notification=NotificationContent(
            title=f"{message.name} posted {kind}",
            body=truncate_body(message.text, settings.max_notification_body_length),
            icon=message.profilePicUrl or settings.notification_placeholder_icon,
            click_action=settings.click_action,
        )
    )


async def cleanup_tokens(results: Sequence[DeliveryResult], registry: TokenRegistry) -> List[str]:
    """
    Remove tokens the push service reported as permanently invalid.

    Every failure is logged. Deletions run concurrently and this returns once
    all of them have settled; a failed deletion is logged and left for the
    next dispatch.

    Returns:
        Tokens scheduled for deletion
    """
    stale_tokens = []
    for result in results:
        if result.success:
            continue
        logger.error(f"Failure sending notification to {result.token}: {result.error_code} {result.error_message or ''}".rstrip())
        if result.is_permanent_failure:
            stale_tokens.append(result.token)

    if not stale_tokens:
        return stale_tokens

    outcomes = await asyncio.gather(
        *(registry.delete_token(token) for token in stale_tokens),
        return_exceptions=True,
    )
    for token, outcome in zip(stale_tokens, outcomes):
        if isinstance(outcome, Exception):
            logger.warning(f"Error removing invalid token {token}: {str(outcome)}")
    return stale_tokens


async def send_notifications(message: Message,
                             registry: TokenRegistry,
                             delivery: DeliveryService,
                             settings: Optional[Settings] = None) -> DispatchReport:
    """Notify every registered device about a new message and prune dead tokens."""
    payload = build_notification_payload(message, settings)

    tokens = await registry.list_tokens()
    if not tokens:
        logger.info("No device tokens registered, skipping notifications")
        return DispatchReport(payload=payload)

    results = await delivery.send_to_tokens(tokens, payload)
    removed_tokens = await cleanup_tokens(results, registry)
    logger.info(f"Notifications have been sent to {len(tokens)} tokens and {len(removed_tokens)} tokens cleaned up")
    return DispatchReport(payload=payload, results=results, removed_tokens=removed_tokens)
