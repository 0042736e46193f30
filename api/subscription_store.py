import json
import logging
import traceback
import firebase_admin
from firebase_admin import credentials, firestore
from . import config
from .errors import PersistenceFailure

logger = logging.getLogger(__name__)

# Initialize Firebase
firebase_initialized = False
db = None

_default_store = None


def initialize_firebase():
    """Initialize Firebase connection and return the Firestore client"""
    global firebase_initialized, db
    if firebase_initialized:
        return db

    try:
        if config.FIREBASE_SERVICE_ACCOUNT:
            # Parse the Firebase service account JSON
            firebase_credentials_dict = json.loads(config.FIREBASE_SERVICE_ACCOUNT)
            cred = credentials.Certificate(firebase_credentials_dict)
        else:
            # Cloud Functions / Cloud Run provide application default credentials
            cred = credentials.ApplicationDefault()

        # Initialize the Firebase app
        if not firebase_admin._apps:
            firebase_admin.initialize_app(cred)

        db = firestore.client()
        firebase_initialized = True
        logger.info("Firebase initialized successfully")
        return db
    except Exception as e:
        logger.error(f"Firebase initialization error: {e}")
        logger.error(traceback.format_exc())
        raise PersistenceFailure(f"Firebase initialization error: {e}") from e


class SubscriptionStore:
    """Per-user subscription status documents under artifacts/{app_id}"""

    def __init__(self, db=None, app_id=None):
        self._db = db
        self.app_id = app_id or config.APP_ID

    @property
    def db(self):
        if self._db is None:
            self._db = initialize_firebase()
        return self._db

    def status_path(self, user_id):
        return f"artifacts/{self.app_id}/users/{user_id}/subscriptions/status"

    def status_ref(self, user_id):
        return self.db.document(self.status_path(user_id))

    def merge_status(self, user_id, fields):
        """Merge fields into the user's status document, creating it if absent"""
        update_data = dict(fields)
        update_data['updated_at'] = firestore.SERVER_TIMESTAMP

        try:
            self.status_ref(user_id).set(update_data, merge=True)
        except PersistenceFailure as e:
            e.user_id = user_id
            raise
        except Exception as e:
            raise PersistenceFailure(e, user_id=user_id) from e


def get_store():
    """Process-wide store, created on first use"""
    global _default_store
    if _default_store is None:
        _default_store = SubscriptionStore()
    return _default_store
