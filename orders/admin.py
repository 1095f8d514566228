"""Django admin configuration for orders."""

from django.contrib import admin

from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    """Read-only order lines; prices are fixed at purchase time."""

    model = OrderItem
    extra = 0
    readonly_fields = ('artwork', 'quantity', 'price')
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('id', 'customer_name', 'customer_email', 'total_amount', 'status', 'payment_id', 'created_at')
    list_filter = ('status', 'created_at')
    search_fields = ('id', 'customer_email', 'customer_name', 'payment_id')
    readonly_fields = ('total_amount', 'payment_id', 'paid_at', 'created_at', 'updated_at')
    inlines = [OrderItemInline]
