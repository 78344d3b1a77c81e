import os

import pytest

from chat_functions.config import Settings
from chat_functions.schemas import DeliveryResult, SafeSearchVerdict


class FakeTokenRegistry:
    def __init__(self, tokens=None, failing_deletes=()):
        self.tokens = list(tokens or [])
        self.deleted = []
        self.failing_deletes = set(failing_deletes)

    async def list_tokens(self):
        return list(self.tokens)

    async def delete_token(self, token):
        if token in self.failing_deletes:
            raise RuntimeError(f"cannot delete {token}")
        self.deleted.append(token)
        self.tokens.remove(token)


class FakeDeliveryService:
    """Succeeds for every token except those mapped to an error code."""

    def __init__(self, errors=None):
        self.errors = errors or {}
        self.calls = []

    async def send_to_tokens(self, tokens, payload):
        self.calls.append((list(tokens), payload))
        return [DeliveryResult(token=token, error_code=self.errors.get(token)) for token in tokens]


class FakeMessageStore:
    def __init__(self):
        self.messages = []
        self.moderated = []

    async def add_message(self, message):
        self.messages.append(message)
        return f"msg{len(self.messages)}"

    async def mark_moderated(self, message_id):
        self.moderated.append(message_id)


class FakeObjectStorage:
    def __init__(self, content=b"image-bytes"):
        self.content = content
        self.downloads = []
        self.uploads = []

    async def download(self, bucket, name, destination):
        self.downloads.append((bucket, name, destination))
        with open(destination, "wb") as f:
            f.write(self.content)

    async def upload(self, bucket, source, name, metadata):
        with open(source, "rb") as f:
            data = f.read()
        self.uploads.append((bucket, source, name, metadata, data))


class FakeDetector:
    def __init__(self, verdict=None):
        self.verdict = verdict or SafeSearchVerdict()
        self.uris = []

    async def detect(self, image_uri):
        self.uris.append(image_uri)
        return self.verdict


class FakeBlurrer:
    def __init__(self, error=None):
        self.error = error
        self.paths = []

    async def blur(self, path):
        self.paths.append(path)
        assert os.path.exists(path)
        if self.error:
            raise self.error
        with open(path, "wb") as f:
            f.write(b"blurred")


@pytest.fixture
def settings():
    return Settings(gcloud_project="demo-chat", _env_file=None)


@pytest.fixture
def store():
    return FakeMessageStore()
