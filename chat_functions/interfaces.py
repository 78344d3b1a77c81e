"""
Capabilities the handlers depend on.

Handlers receive these as arguments instead of reaching for global SDK
clients, so tests can pass in-memory fakes.
"""
from typing import List, Protocol, Sequence

from .schemas import DeliveryResult, Message, NotificationPayload, SafeSearchVerdict


class TokenRegistry(Protocol):
    async def list_tokens(self) -> List[str]:
        ...

    async def delete_token(self, token: str) -> None:
        ...


class DeliveryService(Protocol):
    async def send_to_tokens(self, tokens: Sequence[str], payload: NotificationPayload) -> List[DeliveryResult]:
        """Deliver `payload` to every token, one result per token in input order."""
        ...


class MessageStore(Protocol):
    async def add_message(self, message: Message) -> str:
        ...

    async def mark_moderated(self, message_id: str) -> None:
        ...


class ObjectStorage(Protocol):
    async def download(self, bucket: str, name: str, destination: str) -> None:
        ...

    async def upload(self, bucket: str, source: str, name: str, metadata: dict) -> None:
        ...


class SafeSearchDetector(Protocol):
    async def detect(self, image_uri: str) -> SafeSearchVerdict:
        ...


class ImageBlurrer(Protocol):
    async def blur(self, path: str) -> None:
        ...
