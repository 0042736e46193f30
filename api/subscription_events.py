"""PayPal subscription event parsing and the tier transition table.

Nothing here touches HTTP or Firestore, so the mapping from PayPal event
types to subscription tiers can be checked on its own.
"""
from enum import Enum
from .errors import MalformedPayload


class Tier(str, Enum):
    PRO = 'pro'
    FREE = 'free'


class SubscriptionEvent(str, Enum):
    CREATED = 'BILLING.SUBSCRIPTION.CREATED'
    ACTIVATED = 'BILLING.SUBSCRIPTION.ACTIVATED'
    CANCELLED = 'BILLING.SUBSCRIPTION.CANCELLED'
    SUSPENDED = 'BILLING.SUBSCRIPTION.SUSPENDED'


# Extend by adding rows; existing rows are part of the contract with the app
TIER_TRANSITIONS = {
    SubscriptionEvent.CREATED: Tier.PRO,
    SubscriptionEvent.ACTIVATED: Tier.PRO,
    SubscriptionEvent.CANCELLED: Tier.FREE,
    SubscriptionEvent.SUSPENDED: Tier.FREE,
}

ACTIVE_STATUS = 'active'


def parse_event(webhook_data):
    """Return the event_type of a webhook body, or raise MalformedPayload"""
    if not isinstance(webhook_data, dict):
        raise MalformedPayload(f"Webhook body is not an object: {webhook_data!r}")

    event_type = webhook_data.get('event_type')
    if not isinstance(event_type, str) or not event_type:
        raise MalformedPayload(f"Invalid PayPal webhook structure: {webhook_data!r}")

    return event_type


def _non_empty_string(value):
    return value if isinstance(value, str) and value else None


def extract_user_id(resource):
    """Find the user ID passed as custom_id during subscription creation"""
    if not isinstance(resource, dict):
        return None

    subscriber = resource.get('subscriber')
    if isinstance(subscriber, dict):
        user_id = _non_empty_string(subscriber.get('custom_id'))
        if user_id:
            return user_id

    return _non_empty_string(resource.get('custom_id'))


def resolve_event(event_type):
    """Map an event type to a SubscriptionEvent, None if it changes no tier"""
    try:
        return SubscriptionEvent(event_type)
    except ValueError:
        return None


def status_for(event):
    if TIER_TRANSITIONS[event] is Tier.PRO:
        return ACTIVE_STATUS
    return event.value.lower()


def build_status_update(event, resource):
    """Build the fields merged into the user's subscription status document"""
    resource = resource if isinstance(resource, dict) else {}
    return {
        'tier': TIER_TRANSITIONS[event].value,
        'status': status_for(event),
        'paypal_id': resource.get('id'),
    }
