from functools import cached_property

from django.apps import AppConfig
from django.conf import settings


class ShopConfig(AppConfig):
    """Owns the process-wide payment and email clients.

    Clients are built on first use from settings; tests and alternative
    entry points may assign their own before handling requests.
    """
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'shop'
    verbose_name = 'Digital Storefront'

    @cached_property
    def stripe_client(self):
        import stripe

        return stripe.StripeClient(settings.STRIPE_SECRET_KEY)

    @cached_property
    def mailer(self):
        from .notifications import ReceiptMailer

        return ReceiptMailer(
            api_key=settings.RESEND_API_KEY,
            sender=settings.SENDER_EMAIL,
            site_url=settings.SITE_URL,
        )

    @cached_property
    def fulfillment(self):
        from .fulfillment import FulfillmentService

        return FulfillmentService(notifier=self.mailer)
