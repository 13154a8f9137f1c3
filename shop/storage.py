"""Key-addressed storage for uploaded product assets.

Product files and images are stored through Django's storage API
(save/open/delete by name), so nothing in the shop depends on a concrete
filesystem layout. Keys are generated per upload and never reused.
"""

import uuid

from django.core.files.storage import storages
from django.core.signals import setting_changed
from django.dispatch import receiver
from django.utils.functional import LazyObject, empty

UPLOAD_PREFIX = 'products'


class ProductFileStorage(LazyObject):
    """Storage for downloadable product files (the ``product_files`` alias)."""

    def _setup(self):
        self._wrapped = storages['product_files']


product_files = ProductFileStorage()


def product_file_storage():
    return product_files


def product_upload_to(instance, filename):
    """Generate a unique storage key, keeping the uploaded name readable."""
    return f'{UPLOAD_PREFIX}/{uuid.uuid4()}-{filename}'


def original_filename(key):
    """Strip the directory and generated prefix from a storage key."""
    name = key.rsplit('/', 1)[-1]
    # a uuid4 string holds four dashes of its own
    parts = name.split('-', 5)
    if len(parts) == 6:
        try:
            uuid.UUID('-'.join(parts[:5]))
        except ValueError:
            return name
        return parts[5]
    return name


def delete_asset(field_file):
    """Remove a stored asset if present; missing files are ignored."""
    if field_file and field_file.name:
        field_file.storage.delete(field_file.name)


@receiver(setting_changed)
def reset_product_storage(*, setting, **kwargs):
    if setting == 'STORAGES':
        product_files._wrapped = empty
