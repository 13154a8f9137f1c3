import logging

import resend
from django.template.loader import render_to_string
from django.urls import reverse

from .exceptions import NotificationError
from .formatters import format_currency

logger = logging.getLogger(__name__)

RECEIPT_SUBJECT = 'Order Confirmation'


class ReceiptMailer:
    """Sends purchase receipts through Resend."""

    def __init__(self, api_key, sender, site_url):
        self.api_key = (api_key or '').strip()
        self.sender = sender
        self.site_url = site_url.rstrip('/')
        if self.api_key:
            resend.api_key = self.api_key

    def download_url(self, verification):
        return self.site_url + reverse('shop:download', args=[verification.id])

    def build_receipt(self, email, product, order, verification):
        context = {
            'product_name': product.name,
            'order_id': order.id,
            'order_created_at': order.created_at,
            'amount_paid': format_currency(order.price_paid_in_cents),
            'download_url': self.download_url(verification),
            'expires_at': verification.expires_at,
        }
        return {
            'from': f'Support <{self.sender}>',
            'to': [email],
            'subject': RECEIPT_SUBJECT,
            'html': render_to_string('shop/emails/purchase_receipt.html', context),
            'text': render_to_string('shop/emails/purchase_receipt.txt', context),
        }

    def send_receipt(self, email, product, order, verification):
        if not self.api_key:
            raise NotificationError('Resend API key is not configured.')

        payload = self.build_receipt(email, product, order, verification)

        try:
            response = resend.Emails.send(payload)
        except Exception as e:
            raise NotificationError(f'Resend rejected receipt for order {order.id}: {e}') from e

        email_id = response.get('id') if isinstance(response, dict) else getattr(response, 'id', None)
        if not email_id:
            raise NotificationError(f'Unexpected Resend response: {response!r}')

        logger.info("Receipt %s sent for order %s", email_id, order.id)
        return email_id
