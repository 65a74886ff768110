import json
import logging
from typing import Optional

import firebase_admin
import google.cloud.firestore
from firebase_admin import credentials, firestore

from ..config import settings

logger = logging.getLogger(__name__)


class FirebaseApp:
    """Process-wide Firebase Admin app, created on first use."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(FirebaseApp, cls).__new__(cls)
            cls._instance.initialized = False
        return cls._instance

    def __init__(self):
        if self.initialized:
            return
        self.app: Optional[firebase_admin.App] = None
        self.firestore_db: Optional[google.cloud.firestore.Client] = None
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
            if settings.firebase_project_id:
                options["projectId"] = settings.firebase_project_id

            cert_json = settings.firebase_secret
            if cert_json:
                cert_dict = json.loads(cert_json)
                if isinstance(cert_dict, str):
                    cert_dict = json.loads(cert_dict)
                cred = credentials.Certificate(cert_dict)
            else:
                # Fall back to GOOGLE_APPLICATION_CREDENTIALS / metadata server
                logger.warning("Firebase secret not configured, using application default credentials")
                cred = credentials.ApplicationDefault()

            self.app = firebase_admin.initialize_app(credential=cred, options=options or None)
            logger.info(f"Initialized Firebase app: {self.app.name}")

        self.firestore_db = firestore.client(self.app)
