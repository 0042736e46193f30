class WebhookError(Exception):
    """Base error for a webhook request that cannot be processed"""
    status_code = 500
    message = 'Internal Server Error'

    def __init__(self, detail=None):
        super().__init__(detail or self.message)
        self.detail = detail


class MalformedPayload(WebhookError):
    """Body is not a JSON object with a non-empty event_type"""
    status_code = 400
    message = 'Invalid webhook structure'


class UnresolvableUser(WebhookError):
    """No custom_id found at any known payload location"""
    status_code = 400
    message = 'Missing user ID in payload'

    def __init__(self, event_type):
        super().__init__(f"Could not extract user ID from PayPal payload for event: {event_type}")
        self.event_type = event_type


class UnsupportedMethod(WebhookError):
    status_code = 405
    message = 'Method Not Allowed'


class PersistenceFailure(WebhookError):
    """Firestore write (or client bootstrap) failed"""
    status_code = 500
    message = 'Database Update Failed'

    def __init__(self, detail, user_id=None):
        super().__init__(detail)
        self.user_id = user_id
