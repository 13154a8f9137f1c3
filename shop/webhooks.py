import json
import logging

import stripe
from stripe._error import SignatureVerificationError

from .exceptions import AuthenticationFailure, ValidationFailure

logger = logging.getLogger(__name__)

CHARGE_SUCCEEDED = 'charge.succeeded'

NOT_HANDLED = 'Event type not handled'
PROCESSED = 'Webhook processed successfully'
ALREADY_PROCESSED = 'Webhook already processed'


def verify_event(payload, sig_header, secret):
    """Check the Stripe-Signature header against the raw body and decode it.

    ``payload`` must be the exact bytes received; re-encoded JSON will not
    match the signature.
    """
    if not secret:
        logger.warning("STRIPE_WEBHOOK_SECRET not set, rejecting webhook")
        raise AuthenticationFailure()
    if not sig_header:
        raise AuthenticationFailure('Bad Request: Missing signature')

    if isinstance(payload, bytes):
        try:
            payload = payload.decode('utf-8')
        except UnicodeDecodeError:
            raise AuthenticationFailure()

    try:
        stripe.WebhookSignature.verify_header(
            payload, sig_header, secret, stripe.Webhook.DEFAULT_TOLERANCE
        )
    except SignatureVerificationError as e:
        logger.warning("Webhook signature rejected: %s", e)
        raise AuthenticationFailure()

    try:
        event = json.loads(payload)
    except ValueError:
        raise ValidationFailure('Bad Request: Invalid payload')
    if not isinstance(event, dict):
        raise ValidationFailure('Bad Request: Invalid payload')
    return event


def route_event(event, fulfillment):
    """Dispatch a verified event; only successful charges are fulfilled."""
    event_type = event.get('type')
    if event_type != CHARGE_SUCCEEDED:
        logger.info("Ignoring webhook event %s (%s)", event.get('id'), event_type)
        return NOT_HANDLED

    charge = (event.get('data') or {}).get('object') or {}
    result = fulfillment.fulfill(charge, event_id=event.get('id'))
    return ALREADY_PROCESSED if result.duplicate else PROCESSED
