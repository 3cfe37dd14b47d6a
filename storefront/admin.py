from django.contrib import admin

from .models import CustomerProfile, Order, OrderItem


@admin.register(CustomerProfile)
class CustomerProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'display_name', 'role', 'created_at']
    list_filter = ['role', 'created_at']
    search_fields = ['user__username', 'user__email', 'display_name']
    readonly_fields = ['created_at', 'updated_at']

    fieldsets = (
        ('Account', {
            'fields': ('user', 'display_name', 'role')
        }),
        ('Addresses', {
            'fields': ('billing_address', 'shipping_address')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer', 'status', 'total', 'currency', 'created_at']
    list_filter = ['status', 'currency', 'created_at']
    search_fields = ['customer__username', 'customer__email']
    date_hierarchy = 'created_at'
    inlines = [OrderItemInline]
