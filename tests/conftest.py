"""Shared fixtures for the storefront test suite."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
import uuid
from unittest.mock import MagicMock

import pytest
from django.apps import apps
from django.core.files.base import ContentFile

from shop.fulfillment import FulfillmentService
from shop.models import Product

WEBHOOK_SECRET = "whsec_test_secret"


def sign(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Compute a valid Stripe-Signature header for ``payload``."""
    ts = timestamp or int(time.time())
    signed_payload = f"{ts}.".encode() + payload
    signature = hmac.new(secret.encode(), signed_payload, hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"


def charge_event(product_id=None, email="buyer@example.com", amount=1999, event_type="charge.succeeded", event_id=None):
    """Build a Stripe event payload carrying a charge object."""
    charge = {
        "id": f"ch_{uuid.uuid4().hex[:24]}",
        "object": "charge",
        "amount": amount,
        "billing_details": {"email": email},
        "metadata": {"productId": str(product_id)} if product_id else {},
    }
    return {
        "id": event_id or f"evt_{uuid.uuid4().hex[:24]}",
        "object": "event",
        "type": event_type,
        "data": {"object": charge},
    }


def encode(event: dict) -> bytes:
    # Stripe sends pretty-printed JSON; the signature covers these exact bytes
    return json.dumps(event, indent=2).encode()


class FakeNotifier:
    """Records receipt requests instead of emailing."""

    def __init__(self, error: Exception | None = None):
        self.sent = []
        self.error = error

    def send_receipt(self, email, product, order, verification):
        if self.error:
            raise self.error
        self.sent.append(
            {"email": email, "product": product, "order": order, "verification": verification}
        )
        return "email_test"


@pytest.fixture(autouse=True)
def isolated_storage(settings, tmp_path):
    """Point uploaded media and product files at a per-test directory."""
    settings.MEDIA_ROOT = tmp_path / "media"
    settings.PRODUCT_FILES_ROOT = tmp_path / "private"
    settings.STORAGES = {
        "default": {
            "BACKEND": "django.core.files.storage.FileSystemStorage",
            "OPTIONS": {"location": tmp_path / "media", "base_url": "/media/"},
        },
        "product_files": {
            "BACKEND": "django.core.files.storage.FileSystemStorage",
            "OPTIONS": {"location": tmp_path / "private"},
        },
        "staticfiles": {
            "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
        },
    }
    return tmp_path


@pytest.fixture
def webhook_secret(settings):
    settings.STRIPE_WEBHOOK_SECRET = WEBHOOK_SECRET
    return WEBHOOK_SECRET


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def fulfillment(notifier):
    return FulfillmentService(notifier=notifier)


@pytest.fixture
def installed_fulfillment(fulfillment):
    """Install a fulfillment service with a fake notifier on the app config."""
    config = apps.get_app_config("shop")
    config.__dict__["fulfillment"] = fulfillment
    yield fulfillment
    config.__dict__.pop("fulfillment", None)


@pytest.fixture
def stripe_client():
    config = apps.get_app_config("shop")
    client = MagicMock()
    config.__dict__["stripe_client"] = client
    yield client
    config.__dict__.pop("stripe_client", None)


def make_product(name="Field Guide", price_in_cents=2500, available=True, **kwargs):
    return Product.objects.create(
        name=name,
        description=f"{name} description",
        price_in_cents=price_in_cents,
        file=ContentFile(b"%PDF-1.4 product contents", name="guide.pdf"),
        image=ContentFile(b"\x89PNG\r\n\x1a\n", name="cover.png"),
        is_available_for_purchase=available,
        **kwargs,
    )


@pytest.fixture
def product(db):
    return make_product()
