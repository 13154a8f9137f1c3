"""Catalog operations used by the admin: save, toggle and delete products.

Stored assets follow their product: a replaced upload removes the old file
and deleting a product removes both of its files.
"""

import logging

from django.db import transaction
from django.utils import timezone

from .models import Product
from .storage import delete_asset

logger = logging.getLogger(__name__)

ASSET_FIELDS = ('file', 'image')


def create_product(form):
    """Save a validated ProductForm as a new, not-yet-available product."""
    product = form.save(commit=False)
    product.is_available_for_purchase = False
    product.save()
    logger.info("Created product %s (%s)", product.id, product.name)
    return product


def update_product(form, previous):
    """Save an edit and drop any asset the edit replaced."""
    product = form.save()
    replace_assets(product, previous)
    logger.info("Updated product %s (%s)", product.id, product.name)
    return product


def replace_assets(product, previous):
    for field in ASSET_FIELDS:
        old_file = getattr(previous, field)
        new_file = getattr(product, field)
        if old_file.name and old_file.name != new_file.name:
            delete_asset(old_file)


def set_availability(products, available):
    """Mark one product or a queryset of products (un)available for purchase."""
    if isinstance(products, Product):
        products.is_available_for_purchase = available
        products.save(update_fields=['is_available_for_purchase', 'updated_at'])
        return 1
    return products.update(is_available_for_purchase=available, updated_at=timezone.now())


def delete_product(product):
    """Delete the product, then its stored assets.

    Raises ProtectedError when orders reference the product.
    """
    files = [getattr(product, field) for field in ASSET_FIELDS]
    product_id = product.pk
    with transaction.atomic():
        product.delete()

    for field_file in files:
        try:
            delete_asset(field_file)
        except OSError:
            logger.exception("Error deleting asset %s of product %s", field_file.name, product_id)
    logger.info("Deleted product %s", product_id)
