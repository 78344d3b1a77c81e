class ChatFunctionsError(Exception):
    """Base class for errors raised by the chat functions."""


class ConfigurationError(ChatFunctionsError):
    """Raised when required configuration or credentials are missing or invalid."""


class ImageBlurError(ChatFunctionsError):
    """Raised when ImageMagick fails to blur an image."""

    def __init__(self, path: str, returncode: int, stderr: str = ""):
        self.path = path
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Blurring {path} failed with exit code {returncode}: {stderr}")


class VisionApiError(ChatFunctionsError):
    """Raised when the Vision API reports an error for an image."""
