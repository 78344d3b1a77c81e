import logging
import os
import tempfile
from typing import Optional

from ..config import Settings, settings as default_settings
from ..interfaces import ImageBlurrer, MessageStore, ObjectStorage, SafeSearchDetector
from ..schemas import Likelihood, ModerationOutcome, ModerationReport, StorageObject

logger = logging.getLogger(__name__)

BLURRED_METADATA = {"blurred": "true"}


def message_id_from_path(file_path: str) -> Optional[str]:
    """Images are uploaded to `<uid>/<messageId>/<fileName>`."""
    parts = file_path.split("/")
    if len(parts) < 3 or not parts[1]:
        return None
    return parts[1]


async def blur_image(obj: StorageObject,
                     storage: ObjectStorage,
                     blurrer: ImageBlurrer,
                     store: MessageStore) -> Optional[str]:
    """
    Blur the image in place and flag its message as moderated.

    Args:
        obj: The uploaded image

    Returns:
        The id of the message marked as moderated, or None if the path
        does not name one
    """
    # One directory per invocation; concurrent uploads may share a basename
    with tempfile.TemporaryDirectory(prefix="blur-") as temp_dir:
        temp_local_file = os.path.join(temp_dir, os.path.basename(obj.name))
        # Download file from bucket
        await storage.download(obj.bucket, obj.name, temp_local_file)
        logger.info(f"Image has been downloaded to {temp_local_file}")

        await blurrer.blur(temp_local_file)
        logger.info("Image has been blurred")

        # Upload the blurred image back over the original
        await storage.upload(obj.bucket, temp_local_file, obj.name, {**obj.metadata, **BLURRED_METADATA})
        logger.info(f"Blurred image has been uploaded to {obj.name}")
    logger.info("Deleted local files.")

    message_id = message_id_from_path(obj.name)
    if message_id is None:
        logger.warning(f"No message id in path {obj.name}, not marking as moderated")
        return None
    await store.mark_moderated(message_id)
    logger.info("Marked the image as moderated in the database.")
    return message_id


async def blur_offensive_images(obj: StorageObject,
                                detector: SafeSearchDetector,
                                storage: ObjectStorage,
                                blurrer: ImageBlurrer,
                                store: MessageStore,
                                settings: Optional[Settings] = None) -> ModerationReport:
    """Blur an uploaded image if SafeSearch flags it as adult or violent."""
    settings = settings or default_settings

    if obj.is_blurred:
        logger.info(f"The image {obj.name} has already been blurred.")
        return ModerationReport(object_name=obj.name, outcome=ModerationOutcome.SKIPPED)

    verdict = await detector.detect(obj.uri)
    if not verdict.is_inappropriate(Likelihood[settings.moderation_threshold.upper()]):
        logger.info(f"The image {obj.name} has been detected as OK.")
        return ModerationReport(object_name=obj.name, outcome=ModerationOutcome.OK, verdict=verdict)

    logger.info(f"The image {obj.name} has been detected as inappropriate.")
    message_id = await blur_image(obj, storage, blurrer, store)
    return ModerationReport(
        object_name=obj.name,
        outcome=ModerationOutcome.BLURRED,
        verdict=verdict,
        message_id=message_id,
    )
