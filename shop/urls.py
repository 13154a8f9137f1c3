from django.urls import path

from . import views

app_name = 'shop'

urlpatterns = [
    path('products/<uuid:product_id>/purchase/', views.create_payment_intent, name='purchase'),
    path('products/download/<uuid:verification_id>/', views.download, name='download'),
    path('webhooks/stripe/', views.StripeWebhookView.as_view(), name='stripe_webhook'),
]
