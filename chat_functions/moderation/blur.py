import asyncio
import logging
from typing import Optional

from ..config import Settings, settings as default_settings
from ..exceptions import ImageBlurError

logger = logging.getLogger(__name__)


class ImageMagickBlurrer:
    """Blurs an image file in place with ImageMagick."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    def command(self, path: str) -> list:
        return [self.settings.blur_command, path, "-channel", "RGBA", "-blur", self.settings.blur_geometry, path]

    async def blur(self, path: str) -> None:
        process = await asyncio.create_subprocess_exec(
            *self.command(path),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await process.communicate()
        if process.returncode != 0:
            raise ImageBlurError(path, process.returncode, stderr.decode(errors="replace").strip())
