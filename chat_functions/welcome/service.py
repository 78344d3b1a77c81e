import logging
from typing import Optional

from ..config import Settings, settings as default_settings
from ..interfaces import MessageStore
from ..schemas import AuthUser, Message

logger = logging.getLogger(__name__)


def build_welcome_message(user: AuthUser, settings: Optional[Settings] = None) -> Message:
    settings = settings or default_settings
    full_name = user.display_name or "Anonymous"
    return Message(
        name=settings.welcome_bot_name,
        profilePicUrl=settings.welcome_bot_profile_pic,
        text=f"{full_name} signed in for the first time! Welcome!",
    )


async def add_welcome_message(user: AuthUser, store: MessageStore, settings: Optional[Settings] = None) -> str:
    """Post a chat message welcoming a user who signed in for the first time."""
    logger.info("A new user signed in for the first time.")
    message_id = await store.add_message(build_welcome_message(user, settings))
    logger.info(f"Welcome message {message_id} written to database.")
    return message_id


async def welcome_new_user(user: AuthUser, store: MessageStore, settings: Optional[Settings] = None) -> Optional[str]:
    """
    Welcome a user from the blocking sign-up trigger.

    The trigger runs before the account exists and any error would reject
    the sign-up, so failures are logged and swallowed here.

    Returns:
        The welcome message id, or None if it could not be written
    """
    try:
        return await add_welcome_message(user, store, settings)
    except Exception:
        logger.exception(f"Failed to write welcome message for user {user.uid}")
        return None
