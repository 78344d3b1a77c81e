from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Error codes reported by FCM for tokens that will never succeed again
INVALID_REGISTRATION_TOKEN = "invalid-registration-token"
REGISTRATION_TOKEN_NOT_REGISTERED = "registration-token-not-registered"
PERMANENT_INVALIDITY_CODES = frozenset({
    INVALID_REGISTRATION_TOKEN,
    REGISTRATION_TOKEN_NOT_REGISTERED,
})


class Message(BaseModel):
    """Chat message document stored in the messages collection"""
    model_config = ConfigDict(extra="ignore")

    name: str = "Anonymous"
    text: Optional[str] = None
    profilePicUrl: Optional[str] = None
    imageUrl: Optional[str] = None
    timestamp: Optional[Any] = None
    moderated: bool = False

    def to_document(self) -> Dict[str, Any]:
        """Fields written to Firestore; unset optional fields are left out."""
        document = self.model_dump(exclude_none=True)
        if not self.moderated:
            document.pop("moderated")
        return document


class NotificationContent(BaseModel):
    title: str
    body: str
    icon: str
    click_action: Optional[str] = None


class NotificationPayload(BaseModel):
    """Push payload in the `{notification: {...}}` shape clients expect"""
    notification: NotificationContent

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class DeliveryResult(BaseModel):
    """Outcome of delivering a payload to one token"""
    token: str
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error_code is None

    @property
    def is_permanent_failure(self) -> bool:
        return self.error_code in PERMANENT_INVALIDITY_CODES


class DispatchReport(BaseModel):
    """What a notification invocation did"""
    payload: NotificationPayload
    results: List[DeliveryResult] = Field(default_factory=list)
    removed_tokens: List[str] = Field(default_factory=list)

    @property
    def dispatched(self) -> bool:
        return bool(self.results)


class AuthUser(BaseModel):
    """Subset of the auth user record the welcome handler needs"""
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None


class Likelihood(IntEnum):
    """Vision SafeSearch likelihood scale"""
    UNKNOWN = 0
    VERY_UNLIKELY = 1
    UNLIKELY = 2
    POSSIBLE = 3
    LIKELY = 4
    VERY_LIKELY = 5


class SafeSearchVerdict(BaseModel):
    adult: Likelihood = Likelihood.UNKNOWN
    violence: Likelihood = Likelihood.UNKNOWN

    def is_inappropriate(self, threshold: Likelihood = Likelihood.LIKELY) -> bool:
        return self.adult >= threshold or self.violence >= threshold


class StorageObject(BaseModel):
    """Finalized object in Cloud Storage"""
    bucket: str
    name: str
    content_type: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    @property
    def uri(self) -> str:
        return f"gs://{self.bucket}/{self.name}"

    @property
    def is_blurred(self) -> bool:
        return str(self.metadata.get("blurred", "")).lower() == "true"


class ModerationOutcome(str, Enum):
    SKIPPED = "skipped"
    OK = "ok"
    BLURRED = "blurred"


class ModerationReport(BaseModel):
    object_name: str
    outcome: ModerationOutcome
    verdict: Optional[SafeSearchVerdict] = None
    message_id: Optional[str] = None
