import logging
import os
from dotenv import load_dotenv

# Load environment variables - Vercel will use environment variables from settings
load_dotenv()

DEFAULT_APP_ID = 'default-app-id'

# Application identifier used as the top-level path segment in Firestore
APP_ID = os.getenv("APP_ID") or DEFAULT_APP_ID

# Firebase service account JSON (optional, falls back to application default credentials)
FIREBASE_SERVICE_ACCOUNT = os.getenv("FIREBASE_SERVICE_ACCOUNT")

LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()

# Unknown level names fall back to INFO
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, None)
if not isinstance(LOG_LEVEL, int):
    LOG_LEVEL = logging.INFO

# Headers a browser may send when replaying a PayPal delivery
CORS_ALLOW_HEADERS = ', '.join([
    'Content-Type',
    'Paypal-Transmission-Id',
    'Paypal-Transmission-Time',
    'Paypal-Transmission-Sig',
    'Paypal-Cert-Url',
    'Paypal-Auth-Algo',
])
CORS_ALLOW_METHODS = 'POST, OPTIONS'
