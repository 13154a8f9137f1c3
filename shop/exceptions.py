"""Failures raised while handling payment-provider webhooks.

Each carries the HTTP status and the short plain-text body the webhook
endpoint answers with.
"""


class WebhookError(Exception):
    status_code = 400
    default_message = 'Webhook Error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationFailure(WebhookError):
    """Missing, malformed or mismatched signature."""
    default_message = 'Bad Request: Invalid signature'


class ValidationFailure(WebhookError):
    default_message = 'Bad Request: Missing productId or email'


class NotFoundFailure(WebhookError):
    default_message = 'Bad Request: Product not found'


class ProcessingFailure(WebhookError):
    """Unexpected fault during fulfillment; the provider will redeliver."""
    status_code = 500
    default_message = 'Webhook Error'


class NotificationError(Exception):
    """The receipt email could not be handed to the email provider."""
