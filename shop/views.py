import logging

from django.apps import apps
from django.conf import settings
from django.http import FileResponse, HttpResponse, JsonResponse, Http404
from django.shortcuts import get_object_or_404
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods
from stripe._error import StripeError

from .exceptions import WebhookError
from .models import DownloadVerification, Product
from .storage import original_filename
from .webhooks import route_event, verify_event

logger = logging.getLogger(__name__)


def shop_config():
    return apps.get_app_config('shop')


@require_http_methods(["POST"])
def create_payment_intent(request, product_id):
    """Start a purchase: create a Stripe PaymentIntent tagged with the product."""
    product = get_object_or_404(Product, id=product_id, is_available_for_purchase=True)

    try:
        payment_intent = shop_config().stripe_client.payment_intents.create(
            params={
                'amount': product.price_in_cents,
                'currency': settings.CURRENCY,
                'metadata': {'productId': str(product.id)},
            }
        )
    except StripeError as e:
        logger.warning("PaymentIntent creation failed for product %s: %s", product.id, e)
        return JsonResponse({'error': str(e)}, status=400)

    if payment_intent.client_secret is None:
        logger.error("PaymentIntent for product %s has no client secret", product.id)
        return JsonResponse({'error': 'Unable to create payment intent'}, status=500)

    return JsonResponse({
        'clientSecret': payment_intent.client_secret,
        'product': {
            'id': str(product.id),
            'name': product.name,
            'priceInCents': product.price_in_cents,
        },
    })


@method_decorator(csrf_exempt, name='dispatch')
class StripeWebhookView(View):
    """Receive Stripe events and fulfill successful charges."""
    http_method_names = ['post']

    fulfillment = None
    webhook_secret = None

    def get_fulfillment(self):
        return self.fulfillment or shop_config().fulfillment

    def get_webhook_secret(self):
        return self.webhook_secret or settings.STRIPE_WEBHOOK_SECRET

    def post(self, request, *args, **kwargs):
        try:
            event = verify_event(
                request.body,
                request.headers.get('Stripe-Signature'),
                self.get_webhook_secret(),
            )
            message = route_event(event, self.get_fulfillment())
        except WebhookError as e:
            logger.warning("Webhook rejected with %s: %s", e.status_code, e.message)
            return HttpResponse(e.message, status=e.status_code, content_type='text/plain')
        except Exception:
            logger.exception("Error processing webhook")
            return HttpResponse('Webhook Error', status=500, content_type='text/plain')

        return HttpResponse(message, status=200, content_type='text/plain')


@require_GET
def download(request, verification_id):
    """Serve a purchased file while its download verification is unexpired."""
    verification = (
        DownloadVerification.objects.valid()
        .select_related('product')
        .filter(id=verification_id)
        .first()
    )
    if verification is None:
        return HttpResponse('Download link has expired', status=410, content_type='text/plain')

    product = verification.product
    try:
        handle = product.file.open('rb')
    except FileNotFoundError:
        logger.error("Stored file missing for product %s: %s", product.id, product.file.name)
        raise Http404("File not found")

    return FileResponse(handle, as_attachment=True, filename=original_filename(product.file.name))
