import json
import logging
from typing import Optional

import firebase_admin
import google.cloud.firestore
from firebase_admin import credentials, firestore

from ..config import Settings, settings as default_settings
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class FirebaseApp:
    _instance = None

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super(FirebaseApp, cls).__new__(cls)
            cls._instance.initialized = False
        return cls._instance

    def __init__(self, settings: Optional[Settings] = None):
        if self.initialized:
            return
        logger.info("FirebaseApp.__init__() called")
        self.settings = settings or default_settings
        self.app = None
        self.firestore_db = None
        self.connect()
        self.initialized = True

    def get_firestore_db(self) -> google.cloud.firestore.Client:
        return self.firestore_db

    def connect(self) -> None:
        try:
            # Try to get the existing default app
            self.app = firebase_admin.get_app()
            logger.info("Retrieved existing Firebase app")
        except ValueError:
            # Initialize new app if one doesn't exist
            options = {}
            if self.settings.storage_bucket:
                options["storageBucket"] = self.settings.storage_bucket
            self.app = firebase_admin.initialize_app(
                credential=self._load_credential(),
                options=options or None,
            )
            logger.info(f"Initialized Firebase app: {self.app.name}")
        self.firestore_db = firestore.client(self.app)

    def _load_credential(self) -> Optional[credentials.Base]:
        cert_json = self.settings.firebase_secret
        if not cert_json:
            # The Functions runtime provides application default credentials
            return None
        try:
            cert_dict = json.loads(cert_json)
            if isinstance(cert_dict, str):
                cert_dict = json.loads(cert_dict)
            return credentials.Certificate(cert_dict)
        except ValueError as e:
            logger.error(f"Failed to load Firebase credentials: {str(e)}")
            raise ConfigurationError("FIREBASE_SECRET is not a valid service account JSON") from e
