"""
Cloud Functions entry points.

Binds the chat handlers to their Firebase triggers and supplies the
Firebase-backed implementations of the capabilities they need.
"""
import asyncio
import logging
from functools import lru_cache
from typing import Optional

from firebase_functions import firestore_fn, identity_fn, options, storage_fn

from chat_functions import moderation, notifications, welcome
from chat_functions.config import settings
from chat_functions.firebase import get_app, get_firestore_db
from chat_functions.firebase.stores import CloudStorage, FirestoreMessageStore, FirestoreTokenRegistry
from chat_functions.logging_config import setup_logging
from chat_functions.moderation.blur import ImageMagickBlurrer
from chat_functions.moderation.vision import VisionSafeSearchDetector
from chat_functions.notifications.fcm import FcmDeliveryService
from chat_functions.schemas import AuthUser, Message, StorageObject

setup_logging()
logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _message_store() -> FirestoreMessageStore:
    return FirestoreMessageStore(get_firestore_db(), settings)


@lru_cache(maxsize=None)
def _token_registry() -> FirestoreTokenRegistry:
    return FirestoreTokenRegistry(get_firestore_db(), settings)


@lru_cache(maxsize=None)
def _detector() -> VisionSafeSearchDetector:
    return VisionSafeSearchDetector()


@identity_fn.before_user_created()
def add_welcome_messages(event: identity_fn.AuthBlockingEvent) -> Optional[identity_fn.BeforeCreateResponse]:
    """Adds a message that welcomes new users into the chat. Never blocks account creation."""
    user = AuthUser(uid=event.data.uid, display_name=event.data.display_name, email=event.data.email)
    try:
        store = _message_store()
    except Exception:
        logger.exception("Firestore is not available, skipping welcome message")
        return None
    asyncio.run(welcome.welcome_new_user(user, store, settings))
    return None


@storage_fn.on_object_finalized(memory=options.MemoryOption.GB_2)
def blur_offensive_images(event: storage_fn.CloudEvent[storage_fn.StorageObjectData]) -> None:
    """Checks if uploaded images are flagged as Adult or Violence and if so blurs them."""
    data = event.data
    obj = StorageObject(
        bucket=data.bucket,
        name=data.name,
        content_type=data.content_type,
        metadata=data.metadata or {},
    )
    asyncio.run(moderation.blur_offensive_images(
        obj,
        detector=_detector(),
        storage=CloudStorage(get_app()),
        blurrer=ImageMagickBlurrer(settings),
        store=_message_store(),
        settings=settings,
    ))


@firestore_fn.on_document_created(document=f"{settings.messages_collection}/{{messageId}}")
def send_notifications(event: firestore_fn.Event[Optional[firestore_fn.DocumentSnapshot]]) -> None:
    """Sends a notification to all users when a new message is posted."""
    if event.data is None:
        logger.warning(f"Message {event.params.get('messageId')} has no data, skipping notifications")
        return
    message = Message.model_validate(event.data.to_dict() or {})
    asyncio.run(notifications.send_notifications(
        message,
        registry=_token_registry(),
        delivery=FcmDeliveryService(settings, app=get_app()),
        settings=settings,
    ))
