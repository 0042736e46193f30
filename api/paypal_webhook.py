"""
Vercel function handling PayPal subscription webhooks.

Validates the webhook, extracts the user ID and updates the user's
subscription status in Firestore. Configure the deployed URL
(/api/paypal_webhook) as the webhook URL in the PayPal Developer dashboard.

PayPal signature verification is NOT performed here. Before production use,
deliveries must be verified against PayPal's verify-webhook-signature API.
"""
import json
import logging
import traceback
from http.server import BaseHTTPRequestHandler
from . import config
from .errors import MalformedPayload, PersistenceFailure, UnresolvableUser, UnsupportedMethod
from .subscription_events import (
    TIER_TRANSITIONS,
    Tier,
    build_status_update,
    extract_user_id,
    parse_event,
    resolve_event
)
from .subscription_store import get_store

# Set up logging
logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def process_webhook(webhook_data, store):
    """Apply a parsed PayPal webhook body, returning (status_code, body)"""
    # Validate webhook structure
    try:
        event_type = parse_event(webhook_data)
    except MalformedPayload as e:
        logger.error(str(e))
        return e.status_code, {'error': e.message}

    resource = webhook_data.get('resource')

    # Look for the user ID (passed as 'custom_id' during subscription creation)
    user_id = extract_user_id(resource)
    if not user_id:
        error = UnresolvableUser(event_type)
        logger.error(str(error))
        return error.status_code, {'error': error.message}

    logger.info(f"Processing PayPal event: {event_type} for User ID: {user_id}")

    event = resolve_event(event_type)
    if event is None:
        # Acknowledge other events (like payment complete) but don't change tier state
        logger.info(f"Received acknowledged event: {event_type}. No tier change required.")
        return 204, None

    try:
        store.merge_status(user_id, build_status_update(event, resource))
    except PersistenceFailure as e:
        logger.error(f"Firestore update error for user {user_id}: {e}")
        logger.error(traceback.format_exc())
        return e.status_code, {'error': e.message}

    if TIER_TRANSITIONS[event] is Tier.PRO:
        logger.info(f"User {user_id} upgraded to PRO.")
    else:
        logger.info(f"User {user_id} downgraded to FREE due to {event_type}.")

    # PayPal requires a 2xx response to acknowledge receipt of the webhook
    return 204, None


class handler(BaseHTTPRequestHandler):
    # Subscription store, resolved lazily when left unset
    store = None

    def get_store(self):
        return self.store if self.store is not None else get_store()

    def send_cors_headers(self):
        # Reflect the caller's origin, like cors({ origin: true })
        origin = self.headers.get('Origin')
        self.send_header('Access-Control-Allow-Origin', origin or '*')
        if origin:
            self.send_header('Vary', 'Origin')
        self.send_header('Access-Control-Allow-Methods', config.CORS_ALLOW_METHODS)
        self.send_header('Access-Control-Allow-Headers', config.CORS_ALLOW_HEADERS)

    def send_json(self, status_code, body=None, write_body=True):
        self.send_response(status_code)
        self.send_cors_headers()
        if body is None:
            self.end_headers()
            return

        payload = json.dumps(body).encode()
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(payload)))
        self.end_headers()
        if write_body:
            self.wfile.write(payload)

    def reject_method(self):
        error = UnsupportedMethod()
        self.send_json(error.status_code, {'error': error.message}, write_body=self.command != 'HEAD')

    do_GET = reject_method
    do_HEAD = reject_method
    do_PUT = reject_method
    do_PATCH = reject_method
    do_DELETE = reject_method

    def do_POST(self):
        """Handle POST requests from PayPal webhooks"""
        try:
            # Read and parse the JSON body
            request_body = b''
            try:
                content_length = int(self.headers.get('Content-Length', 0))
                request_body = self.rfile.read(content_length)
                webhook_data = json.loads(request_body.decode('utf-8'))
            except ValueError as e:
                logger.error(f"Failed to parse JSON body: {e}. Payload: {request_body[:10000]!r}")
                error = MalformedPayload(str(e))
                self.send_json(error.status_code, {'error': error.message})
                return

            status_code, body = process_webhook(webhook_data, self.get_store())
            self.send_json(status_code, body)

        except Exception as e:
            logger.error(f"Critical webhook error: {str(e)}")
            logger.error(traceback.format_exc())

            # Non-2xx so PayPal retries the delivery
            self.send_json(500, {'error': 'Internal Server Error'})

    def do_OPTIONS(self):
        # Handle preflight requests for CORS
        self.send_response(204)
        self.send_cors_headers()
        self.end_headers()

    def log_message(self, format, *args):
        logger.info("%s - %s" % (self.address_string(), format % args))
