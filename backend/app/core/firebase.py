"""
Firebase Admin bootstrap.

A single firebase_admin App is shared by the identity provider and the
Firestore document store. Credentials come from a service account file when
FIREBASE_CREDENTIALS_FILE is set, otherwise from the individual env fields.
"""
from typing import Optional

import firebase_admin
from firebase_admin import credentials

from app.core.config import settings
from app.core.logging_config import logger

_firebase_app: Optional[firebase_admin.App] = None


def _build_credential() -> credentials.Base:
    if settings.FIREBASE_CREDENTIALS_FILE:
        return credentials.Certificate(settings.FIREBASE_CREDENTIALS_FILE)

    return credentials.Certificate({
        "type": "service_account",
        "project_id": settings.FIREBASE_PROJECT_ID,
        "client_email": settings.FIREBASE_CLIENT_EMAIL,
        "private_key": settings.firebase_private_key,
        "token_uri": "https://oauth2.googleapis.com/token",
    })


def get_firebase_app() -> firebase_admin.App:
    """Get or initialize the Firebase Admin app (lazy initialization)"""
    global _firebase_app
    if _firebase_app is None:
        try:
            _firebase_app = firebase_admin.get_app()
        except ValueError:
            options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
            _firebase_app = firebase_admin.initialize_app(_build_credential(), options)
            logger.info(f"[Firebase] Initialized app for project '{settings.FIREBASE_PROJECT_ID or 'from credentials file'}'")
    return _firebase_app


def close_firebase_app() -> None:
    global _firebase_app
    if _firebase_app is not None:
        firebase_admin.delete_app(_firebase_app)
        _firebase_app = None
        logger.info("[Firebase] App closed")
