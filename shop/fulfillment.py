"""Turns a verified ``charge.succeeded`` payload into an order.

The order, its download verification and the receipt email happen inside
one transaction: if the email cannot be sent the records are rolled back
and the provider's redelivery starts over from a clean state. The
provider's event id is stored on the order so a redelivered event is
acknowledged without fulfilling twice.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from .exceptions import NotFoundFailure, ProcessingFailure, ValidationFailure
from .models import Customer, DownloadVerification, Order, Product

logger = logging.getLogger(__name__)


@dataclass
class FulfillmentResult:
    order: Order | None = None
    verification: DownloadVerification | None = None
    duplicate: bool = False


def parse_charge(charge):
    """Pull ``(product_id, email, amount)`` out of a charge object."""
    metadata = charge.get('metadata') or {}
    billing_details = charge.get('billing_details') or {}

    product_id = metadata.get('productId')
    email = billing_details.get('email')
    amount = charge.get('amount')

    if not product_id or not email:
        raise ValidationFailure()
    if amount is None:
        raise ValidationFailure('Bad Request: Missing amount')
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValidationFailure('Bad Request: Invalid amount')
    return product_id, email, amount


class FulfillmentService:
    def __init__(self, notifier, download_ttl=None):
        self.notifier = notifier
        if download_ttl is None:
            download_ttl = timedelta(hours=settings.DOWNLOAD_LINK_TTL_HOURS)
        self.download_ttl = download_ttl

    def resolve_product(self, product_id):
        try:
            return Product.objects.get(pk=product_id)
        except (Product.DoesNotExist, ValidationError, ValueError):
            raise NotFoundFailure()

    def fulfill(self, charge, event_id=None):
        product_id, email, amount = parse_charge(charge)
        product = self.resolve_product(product_id)

        if event_id and Order.objects.filter(stripe_event_id=event_id).exists():
            logger.info("Event %s already fulfilled, skipping", event_id)
            return FulfillmentResult(duplicate=True)

        try:
            with transaction.atomic():
                order = Customer.objects.record_order(
                    email=email,
                    product=product,
                    price_paid_in_cents=amount,
                    stripe_event_id=event_id,
                )
                verification = DownloadVerification.objects.issue(product, ttl=self.download_ttl)
                logger.info(
                    "Recorded order %s for product %s (%s cents), download verification %s",
                    order.id, product.id, amount, verification.id,
                )
                self.notifier.send_receipt(
                    email=email,
                    product=product,
                    order=order,
                    verification=verification,
                )
        except IntegrityError:
            if event_id and Order.objects.filter(stripe_event_id=event_id).exists():
                logger.info("Event %s fulfilled concurrently, skipping", event_id)
                return FulfillmentResult(duplicate=True)
            logger.exception("Integrity error while fulfilling product %s", product.id)
            raise ProcessingFailure()
        except Exception:
            logger.exception("Fulfillment failed for product %s", product.id)
            raise ProcessingFailure()

        return FulfillmentResult(order=order, verification=verification)
