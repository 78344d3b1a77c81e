from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration settings for the chat Cloud Functions"""

    # Application settings
    service_name: str = "chat-functions"
    log_level: str = "INFO"
    environment: str = "dev"

    # Firebase settings
    gcloud_project: Optional[str] = None  # set by the Functions runtime as GCLOUD_PROJECT
    firebase_secret: Optional[str] = None  # service account JSON, default credentials when unset
    storage_bucket: Optional[str] = None

    # Firestore collections
    messages_collection: str = "messages"
    tokens_collection: str = "fcmTokens"

    # FCM settings
    fcm_batch_size: int = 500  # FCM allows up to 500 tokens per multicast request
    max_notification_body_length: int = 100
    notification_placeholder_icon: str = "/images/profile_placeholder.png"
    notification_click_action: Optional[str] = None

    # Welcome message settings
    welcome_bot_name: str = "Firebase Bot"
    welcome_bot_profile_pic: str = "/images/firebase-logo.png"

    # Image moderation settings
    moderation_threshold: str = "LIKELY"
    blur_command: str = "convert"  # ImageMagick
    blur_geometry: str = "0x24"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def click_action(self) -> Optional[str]:
        """URL opened when a notification is clicked."""
        if self.notification_click_action:
            return self.notification_click_action
        if self.gcloud_project:
            return f"https://{self.gcloud_project}.firebaseapp.com"
        return None


# Create settings instance
settings = Settings()
