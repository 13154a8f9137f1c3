import uuid
from datetime import timedelta

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from .formatters import format_currency
from .storage import product_file_storage, product_upload_to


class Product(models.Model):
    """Digital product sold through the storefront."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField()
    price_in_cents = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    file = models.FileField(upload_to=product_upload_to, storage=product_file_storage, max_length=255)
    image = models.FileField(upload_to=product_upload_to, max_length=255)
    is_available_for_purchase = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def display_price(self):
        return format_currency(self.price_in_cents)


class CustomerManager(models.Manager):
    @staticmethod
    def normalize_email(email):
        return email.strip().lower()

    def record_order(self, email, product, price_paid_in_cents, stripe_event_id=None):
        """Upsert the customer by email and append an order.

        Creation and update go through the same path: the customer row is
        fetched or created, then the order is attached. Returns the new
        order, which is the customer's most recent one.
        """
        customer, _ = self.get_or_create(email=self.normalize_email(email))
        return customer.orders.create(
            product=product,
            price_paid_in_cents=price_paid_in_cents,
            stripe_event_id=stripe_event_id,
        )


class Customer(models.Model):
    """Buyer identified by email; created on their first successful charge."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = CustomerManager()

    class Meta:
        ordering = ['email']

    def __str__(self):
        return self.email


class Order(models.Model):
    """One successful charge. Never edited after creation."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='orders')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='orders')
    price_paid_in_cents = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    # Provider event id; a redelivered event cannot create a second order
    stripe_event_id = models.CharField(max_length=255, unique=True, null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Order #{self.id} - {self.product} - {format_currency(self.price_paid_in_cents)}"


class DownloadVerificationQuerySet(models.QuerySet):
    def valid(self, at=None):
        return self.filter(expires_at__gt=at or timezone.now())

    def expired(self, at=None):
        return self.filter(expires_at__lte=at or timezone.now())


class DownloadVerificationManager(models.Manager.from_queryset(DownloadVerificationQuerySet)):
    def issue(self, product, ttl=None):
        """Create a download token for ``product`` valid for ``ttl``."""
        if ttl is None:
            ttl = timedelta(hours=settings.DOWNLOAD_LINK_TTL_HOURS)
        return self.create(product=product, expires_at=timezone.now() + ttl)


class DownloadVerification(models.Model):
    """Time-boxed permission to download a purchased product's file."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='download_verifications')
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    objects = DownloadVerificationManager()

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Download of {self.product} until {self.expires_at:%Y-%m-%d %H:%M}"

    def is_valid(self, at=None):
        return (at or timezone.now()) < self.expires_at
