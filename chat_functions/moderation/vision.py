import asyncio
import logging

from google.cloud import vision

from ..exceptions import VisionApiError
from ..schemas import Likelihood, SafeSearchVerdict

logger = logging.getLogger(__name__)


class VisionSafeSearchDetector:
    """SafeSearch detection with the Cloud Vision API."""

    def __init__(self, client: vision.ImageAnnotatorClient = None):
        self._client = client

    @property
    def client(self) -> vision.ImageAnnotatorClient:
        if self._client is None:
            self._client = vision.ImageAnnotatorClient()
        return self._client

    async def detect(self, image_uri: str) -> SafeSearchVerdict:
        image = vision.Image(source=vision.ImageSource(image_uri=image_uri))
        response = await asyncio.to_thread(self.client.safe_search_detection, image=image)
        if response.error.message:
            raise VisionApiError(f"SafeSearch detection failed for {image_uri}: {response.error.message}")

        annotation = response.safe_search_annotation
        verdict = SafeSearchVerdict(
            adult=Likelihood(int(annotation.adult)),
            violence=Likelihood(int(annotation.violence)),
        )
        logger.debug(f"SafeSearch verdict for {image_uri}: adult={verdict.adult.name} violence={verdict.violence.name}")
        return verdict
