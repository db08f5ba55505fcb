"""Firebase Admin SDK initialization and utilities."""

import asyncio
import json
import os
from typing import Any

import firebase_admin
from firebase_admin import auth, credentials, firestore_async, storage
from structlog import get_logger

logger = get_logger(__name__)

_firebase_app: firebase_admin.App | None = None


def initialize_firebase(
    firebase_credentials_path: str | None = None,
    firebase_config_json: str | None = None,
    storage_bucket: str | None = None,
) -> None:
    """
    Initialize Firebase Admin SDK.

    Args:
        firebase_credentials_path: Optional path to service account JSON file.
        firebase_config_json: Optional raw JSON string of service account.
        storage_bucket: Default Cloud Storage bucket for uploads.

    Looks for Firebase credentials in order:
    1. FIREBASE_CONFIG_JSON raw string
    2. FIREBASE_CREDENTIALS_PATH file
    3. Default application credentials
    """
    global _firebase_app

    if _firebase_app is not None:
        logger.info("Firebase already initialized")
        return

    options: dict[str, Any] = {}
    if storage_bucket:
        options["storageBucket"] = storage_bucket

    try:
        cred = None

        if firebase_config_json:
            logger.info("Initializing Firebase with JSON string from environment")
            cred = credentials.Certificate(json.loads(firebase_config_json))
        elif firebase_credentials_path and os.path.exists(firebase_credentials_path):
            logger.info("Initializing Firebase with JSON file", path=firebase_credentials_path)
            cred = credentials.Certificate(firebase_credentials_path)

        if cred:
            _firebase_app = firebase_admin.initialize_app(cred, options or None)
        else:
            _firebase_app = firebase_admin.initialize_app(options=options or None)
            logger.info("Firebase initialized with default credentials")

    except Exception as e:
        logger.error("Failed to initialize Firebase", error=str(e))
        raise


def get_firebase_app() -> firebase_admin.App:
    """
    Get the Firebase app instance.

    Raises:
        RuntimeError: If Firebase is not initialized
    """
    if _firebase_app is None:
        raise RuntimeError("Firebase not initialized. Call initialize_firebase() first.")
    return _firebase_app


def is_firebase_initialized() -> bool:
    """Report whether the Admin SDK has been initialized."""
    return _firebase_app is not None


def get_firestore_client() -> Any:
    """Return the async Firestore client bound to the Firebase app."""
    return firestore_async.client(app=get_firebase_app())


def get_storage_bucket() -> Any:
    """Return the default Cloud Storage bucket bound to the Firebase app."""
    return storage.bucket(app=get_firebase_app())


async def verify_firebase_token(id_token: str) -> dict:
    """
    Verify a Firebase ID token.

    Args:
        id_token: Firebase ID token from the client

    Returns:
        Decoded token containing user information

    Raises:
        ValueError: If token is invalid, expired or revoked
    """
    try:
        # check_revoked so that logout takes effect for outstanding tokens
        decoded_token = await asyncio.to_thread(
            auth.verify_id_token,
            id_token,
            app=get_firebase_app(),
            check_revoked=True,
            clock_skew_seconds=10,
        )

        logger.debug(
            "Firebase token verified",
            uid=decoded_token.get("uid"),
            email=decoded_token.get("email"),
        )

        return decoded_token

    except auth.RevokedIdTokenError as e:
        logger.info("Revoked Firebase ID token", error=str(e))
        raise ValueError("Session has been revoked") from e
    except auth.InvalidIdTokenError as e:
        logger.warning("Invalid or expired Firebase ID token", error=str(e))
        raise ValueError(f"Invalid Firebase ID token: {e!s}") from e
    except Exception as e:
        logger.error("Firebase token verification failed", error=str(e))
        raise ValueError(f"Token verification failed: {e!s}") from e
