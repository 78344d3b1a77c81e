import asyncio
import logging
from typing import List, Optional

import google.cloud.firestore
from firebase_admin import firestore, storage

from ..config import Settings, settings as default_settings
from ..schemas import Message

logger = logging.getLogger(__name__)


class FirestoreTokenRegistry:
    """Device tokens stored as document ids of the fcmTokens collection."""

    def __init__(self, db: google.cloud.firestore.Client, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings

    async def list_tokens(self) -> List[str]:
        tokens_ref = self.db.collection(self.settings.tokens_collection)
        docs = await asyncio.to_thread(lambda: list(tokens_ref.stream()))
        return [doc.id for doc in docs]

    async def delete_token(self, token: str) -> None:
        token_ref = self.db.collection(self.settings.tokens_collection).document(token)
        await asyncio.to_thread(token_ref.delete)
        logger.info(f"Removed invalid token: {token}")


class FirestoreMessageStore:
    """Chat messages in the messages collection."""

    def __init__(self, db: google.cloud.firestore.Client, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings

    async def add_message(self, message: Message) -> str:
        document = message.to_document()
        if message.timestamp is None:
            document['timestamp'] = firestore.SERVER_TIMESTAMP
        _, message_ref = await asyncio.to_thread(
            self.db.collection(self.settings.messages_collection).add, document
        )
        return message_ref.id

    async def mark_moderated(self, message_id: str) -> None:
        message_ref = self.db.collection(self.settings.messages_collection).document(message_id)
        await asyncio.to_thread(message_ref.update, {'moderated': True})


class CloudStorage:
    """Object storage backed by the Firebase Admin storage bucket."""

    def __init__(self, app=None):
        self.app = app

    async def download(self, bucket: str, name: str, destination: str) -> None:
        blob = storage.bucket(bucket, app=self.app).blob(name)
        await asyncio.to_thread(blob.download_to_filename, destination)

    async def upload(self, bucket: str, source: str, name: str, metadata: dict) -> None:
        blob = storage.bucket(bucket, app=self.app).blob(name)
        blob.metadata = metadata
        await asyncio.to_thread(blob.upload_from_filename, source)
