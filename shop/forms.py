from django import forms
from django.core.files.uploadedfile import UploadedFile

from .models import Product


class ProductForm(forms.ModelForm):
    """Admin form for adding and editing products.

    File and image are required when adding; on edit an empty upload keeps
    the stored asset.
    """

    class Meta:
        model = Product
        fields = ['name', 'price_in_cents', 'description', 'file', 'image']
        labels = {'price_in_cents': 'Price in cents'}

    def clean_image(self):
        image = self.cleaned_data.get('image')
        if isinstance(image, UploadedFile):
            content_type = getattr(image, 'content_type', '') or ''
            if not content_type.startswith('image/'):
                raise forms.ValidationError('File must be an image')
        return image
