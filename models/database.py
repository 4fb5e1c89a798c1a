"""Firebase client handle and connection setup."""

import inspect
import os
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import firebase_admin
from firebase_admin import auth, credentials, firestore_async, storage
from google.cloud import firestore

from config.settings import Settings
from utils.logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")

USERS = "users"
NUTRITIONISTS = "nutritionists"
ADMINS = "admin"
CHATS = "chats"
FEEDBACKS = "Feedbacks"
FOODS = "foods"
RECIPES = "recipes"
AGGREGATES = "aggregates"


class FirebaseConfigError(RuntimeError):
    """Raised when Firebase credentials cannot be resolved at startup."""


class Database:
    """Firebase client handle shared by the services of one application."""

    def __init__(self, client: Any, auth_client: Any = auth, bucket: Any = None):
        self.client = client
        self.auth = auth_client
        self.bucket = bucket

    def collection(self, name: str):
        return self.client.collection(name)

    def users(self):
        return self.client.collection(USERS)

    def nutritionists(self):
        return self.client.collection(NUTRITIONISTS)

    def admins(self):
        return self.client.collection(ADMINS)

    def chats(self):
        return self.client.collection(CHATS)

    def user(self, uid: str):
        return self.users().document(uid)

    def nutritionist(self, uid: str):
        return self.nutritionists().document(uid)

    async def run_transaction(self, callback: Callable[[Any], Awaitable[T]]) -> T:
        """Run ``callback(transaction)`` with Firestore's retry-on-contention."""
        transaction = self.client.transaction()

        @firestore.async_transactional
        async def _execute(txn):
            return await callback(txn)

        return await _execute(transaction)


def build_credentials_info(config: Settings) -> Optional[Dict[str, str]]:
    """Assemble a service account dict from discrete environment variables."""
    required = {
        "project_id": config.firebase_project_id,
        "private_key": config.firebase_private_key,
        "client_email": config.firebase_client_email,
    }
    if not all(required.values()):
        return None

    private_key = config.firebase_private_key.strip().strip('"').strip("'")
    private_key = private_key.replace("\\n", "\n")

    return {
        "type": "service_account",
        "project_id": config.firebase_project_id,
        "private_key_id": config.firebase_private_key_id,
        "private_key": private_key,
        "client_email": config.firebase_client_email,
        "client_id": config.firebase_client_id,
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
        "client_x509_cert_url": config.firebase_client_x509_cert_url,
    }


def load_credentials(config: Settings) -> credentials.Certificate:
    """Resolve credentials from a file path, falling back to env variables."""
    path = config.firebase_service_account_path
    if path:
        if not os.path.isfile(path):
            raise FirebaseConfigError(f"Service account file not found: {path}")
        logger.info(f"Using Firebase service account file: {path}")
        return credentials.Certificate(path)

    info = build_credentials_info(config)
    if info is None:
        raise FirebaseConfigError(
            "Firebase credentials missing: set FIREBASE_SERVICE_ACCOUNT_PATH or "
            "FIREBASE_PROJECT_ID, FIREBASE_PRIVATE_KEY and FIREBASE_CLIENT_EMAIL"
        )
    logger.info(f"Using Firebase service account for project: {info['project_id']}")
    return credentials.Certificate(info)


def init_firebase(config: Settings) -> Database:
    """Initialize the Admin SDK and return the client handle.

    Any failure propagates so the application refuses to start.
    """
    if not config.firebase_storage_bucket:
        raise FirebaseConfigError("FIREBASE_STORAGE_BUCKET is required")

    cred = load_credentials(config)
    try:
        app = firebase_admin.get_app()
    except ValueError:
        app = firebase_admin.initialize_app(cred, {"storageBucket": config.firebase_storage_bucket})

    database = Database(
        client=firestore_async.client(app),
        auth_client=auth,
        bucket=storage.bucket(app=app),
    )
    logger.info("Firebase Admin SDK initialized (Firestore, Auth, Storage)")
    return database


async def close_firebase(database: Optional[Database]):
    """Release the Firestore client."""
    if database is None:
        return
    close = getattr(database.client, "close", None)
    if close is not None:
        result = close()
        if inspect.isawaitable(result):
            await result
    logger.info("Firestore client closed")
