"""HTTP tests for the webhook, purchase and download endpoints."""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from django.urls import reverse
from stripe._error import StripeError

from shop.fulfillment import FulfillmentService
from shop.models import Customer, DownloadVerification, Order
from shop.views import StripeWebhookView
from tests.conftest import FakeNotifier, charge_event, encode, make_product, sign


def post_event(client, body, header):
    return client.post(
        reverse("shop:stripe_webhook"),
        data=body,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=header,
    )


# ── Webhook ───────────────────────────────────────────────────────────────


@pytest.mark.django_db
class TestStripeWebhook:
    @pytest.fixture(autouse=True)
    def _setup(self, webhook_secret, installed_fulfillment):
        pass

    def test_charge_succeeded_fulfilled(self, client, notifier, product):
        body = encode(charge_event(product_id=product.id, email="buyer@example.com"))

        response = post_event(client, body, sign(body))

        assert response.status_code == 200
        assert response.content == b"Webhook processed successfully"
        assert Order.objects.count() == 1
        assert DownloadVerification.objects.count() == 1
        assert notifier.sent[0]["verification"] == DownloadVerification.objects.get()

    def test_bad_signature_rejected(self, client, notifier, product):
        body = encode(charge_event(product_id=product.id))
        tampered = encode(charge_event(product_id=product.id, amount=1))

        response = post_event(client, tampered, sign(body))

        assert response.status_code == 400
        assert Order.objects.count() == 0
        assert notifier.sent == []

    def test_missing_signature_rejected(self, client, product):
        body = encode(charge_event(product_id=product.id))
        response = client.post(reverse("shop:stripe_webhook"), data=body, content_type="application/json")
        assert response.status_code == 400

    def test_missing_email_rejected(self, client, product):
        body = encode(charge_event(product_id=product.id, email=None))

        response = post_event(client, body, sign(body))

        assert response.status_code == 400
        assert b"Missing productId or email" in response.content
        assert Customer.objects.count() == 0

    def test_non_integer_amount_rejected(self, client, product):
        body = encode(charge_event(product_id=product.id, amount="abc"))

        response = post_event(client, body, sign(body))

        assert response.status_code == 400
        assert b"Invalid amount" in response.content
        assert Order.objects.count() == 0

    def test_unknown_product_rejected(self, client, product):
        body = encode(charge_event(product_id=uuid.uuid4()))

        response = post_event(client, body, sign(body))

        assert response.status_code == 400
        assert b"Product not found" in response.content
        assert Order.objects.count() == 0

    def test_other_event_type_acknowledged(self, client, product):
        body = encode(charge_event(product_id=product.id, event_type="payment_intent.created"))

        response = post_event(client, body, sign(body))

        assert response.status_code == 200
        assert response.content == b"Event type not handled"
        assert Order.objects.count() == 0
        assert DownloadVerification.objects.count() == 0

    def test_redelivery_acknowledged_without_new_order(self, client, notifier, product):
        body = encode(charge_event(product_id=product.id, event_id="evt_same"))

        first = post_event(client, body, sign(body))
        second = post_event(client, body, sign(body))

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.content == b"Webhook already processed"
        assert Order.objects.count() == 1
        assert len(notifier.sent) == 1

    def test_get_not_allowed(self, client):
        assert client.get(reverse("shop:stripe_webhook")).status_code == 405


@pytest.mark.django_db
def test_processing_failure_returns_500(rf, product):
    service = FulfillmentService(notifier=FakeNotifier(error=RuntimeError("provider down")))
    view = StripeWebhookView.as_view(fulfillment=service, webhook_secret="whsec_injected")
    body = encode(charge_event(product_id=product.id))

    request = rf.post(
        "/webhooks/stripe/",
        data=body,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=sign(body, secret="whsec_injected"),
    )
    response = view(request)

    assert response.status_code == 500
    assert response.content == b"Webhook Error"
    assert Order.objects.count() == 0


# ── Purchase ──────────────────────────────────────────────────────────────


@pytest.mark.django_db
class TestPurchase:
    def test_creates_payment_intent_with_product_metadata(self, client, settings, stripe_client, product):
        settings.CURRENCY = "usd"
        stripe_client.payment_intents.create.return_value.client_secret = "pi_123_secret_456"

        response = client.post(reverse("shop:purchase", args=[product.id]))

        assert response.status_code == 200
        assert response.json() == {
            "clientSecret": "pi_123_secret_456",
            "product": {"id": str(product.id), "name": product.name, "priceInCents": 2500},
        }
        stripe_client.payment_intents.create.assert_called_once_with(
            params={
                "amount": 2500,
                "currency": "usd",
                "metadata": {"productId": str(product.id)},
            }
        )

    def test_unavailable_product_not_found(self, client, stripe_client):
        hidden = make_product(available=False)
        response = client.post(reverse("shop:purchase", args=[hidden.id]))
        assert response.status_code == 404
        stripe_client.payment_intents.create.assert_not_called()

    def test_unknown_product_not_found(self, client, stripe_client):
        response = client.post(reverse("shop:purchase", args=[uuid.uuid4()]))
        assert response.status_code == 404

    def test_stripe_error_reported(self, client, stripe_client, product):
        stripe_client.payment_intents.create.side_effect = StripeError("card declined")

        response = client.post(reverse("shop:purchase", args=[product.id]))

        assert response.status_code == 400
        assert "card declined" in response.json()["error"]

    def test_missing_client_secret(self, client, stripe_client, product):
        stripe_client.payment_intents.create.return_value.client_secret = None
        response = client.post(reverse("shop:purchase", args=[product.id]))
        assert response.status_code == 500


# ── Download ──────────────────────────────────────────────────────────────


@pytest.mark.django_db
class TestDownload:
    def test_valid_verification_streams_file(self, client, product):
        verification = DownloadVerification.objects.issue(product)

        response = client.get(reverse("shop:download", args=[verification.id]))

        assert response.status_code == 200
        assert b"".join(response.streaming_content) == b"%PDF-1.4 product contents"
        assert 'filename="guide.pdf"' in response["Content-Disposition"]
        response.close()

    def test_expired_verification_refused(self, client, product):
        verification = DownloadVerification.objects.issue(product, ttl=timedelta(minutes=-1))
        response = client.get(reverse("shop:download", args=[verification.id]))
        assert response.status_code == 410

    def test_unknown_verification_refused(self, client, db):
        response = client.get(reverse("shop:download", args=[uuid.uuid4()]))
        assert response.status_code == 410

    def test_missing_stored_file(self, client, product):
        product.file.storage.delete(product.file.name)
        verification = DownloadVerification.objects.issue(product)
        response = client.get(reverse("shop:download", args=[verification.id]))
        assert response.status_code == 404
