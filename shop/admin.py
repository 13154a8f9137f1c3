from django.contrib import admin, messages
from django.db.models import ProtectedError

from . import catalog
from .formatters import format_currency
from .forms import ProductForm
from .models import Customer, DownloadVerification, Order, Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    form = ProductForm
    list_display = ['name', 'price', 'is_available_for_purchase', 'order_count', 'created_at']
    list_filter = ['is_available_for_purchase', 'created_at']
    search_fields = ['name', 'description']
    readonly_fields = ['is_available_for_purchase', 'created_at', 'updated_at']
    actions = ['make_available', 'make_unavailable']

    @admin.display(description='Price', ordering='price_in_cents')
    def price(self, obj):
        return obj.display_price

    @admin.display(description='Orders')
    def order_count(self, obj):
        return obj.orders.count()

    def save_model(self, request, obj, form, change):
        if change:
            previous = Product.objects.get(pk=obj.pk)
            catalog.update_product(form, previous)
        else:
            catalog.create_product(form)

    def delete_model(self, request, obj):
        try:
            catalog.delete_product(obj)
        except ProtectedError:
            self.message_user(
                request,
                f'"{obj}" has orders and cannot be deleted. Make it unavailable instead.',
                messages.ERROR,
            )

    def delete_queryset(self, request, queryset):
        for product in queryset:
            self.delete_model(request, product)

    @admin.action(description='Make selected products available for purchase')
    def make_available(self, request, queryset):
        count = catalog.set_availability(queryset, True)
        self.message_user(request, f'{count} product(s) made available.', messages.SUCCESS)

    @admin.action(description='Make selected products unavailable for purchase')
    def make_unavailable(self, request, queryset):
        count = catalog.set_availability(queryset, False)
        self.message_user(request, f'{count} product(s) made unavailable.', messages.SUCCESS)


class OrderInline(admin.TabularInline):
    model = Order
    extra = 0
    fields = ['id', 'product', 'price_paid_in_cents', 'created_at']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['email', 'created_at']
    search_fields = ['email']
    readonly_fields = ['email', 'created_at']
    inlines = [OrderInline]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer', 'product', 'amount_paid', 'created_at']
    list_filter = ['created_at']
    search_fields = ['customer__email', 'product__name', 'stripe_event_id']
    readonly_fields = ['customer', 'product', 'price_paid_in_cents', 'stripe_event_id', 'created_at']

    @admin.display(description='Paid', ordering='price_paid_in_cents')
    def amount_paid(self, obj):
        return format_currency(obj.price_paid_in_cents)

    def has_add_permission(self, request):
        return False  # Orders should only be created through the payment webhook

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(DownloadVerification)
class DownloadVerificationAdmin(admin.ModelAdmin):
    list_display = ['id', 'product', 'expires_at', 'is_valid', 'created_at']
    list_filter = ['expires_at']
    readonly_fields = ['product', 'expires_at', 'created_at']

    @admin.display(boolean=True, description='Valid')
    def is_valid(self, obj):
        return obj.is_valid()

    def has_add_permission(self, request):
        return False
