from decimal import Decimal

from django.contrib.auth.models import User
from django.db import models
from django.utils import timezone

BILLING_FIELDS = [
    'first_name', 'last_name', 'company', 'address_1', 'address_2',
    'city', 'state', 'postcode', 'country', 'email', 'phone',
]

SHIPPING_FIELDS = [
    'first_name', 'last_name', 'company', 'address_1', 'address_2',
    'city', 'state', 'postcode', 'country', 'phone',
]


def _blank_address(fields):
    return {field: '' for field in fields}


def blank_billing_address():
    return _blank_address(BILLING_FIELDS)


def blank_shipping_address():
    return _blank_address(SHIPPING_FIELDS)


class CustomerProfile(models.Model):
    """Storefront account data kept next to the auth user"""

    ROLE_CUSTOMER = 'customer'
    ROLE_SUBSCRIBER = 'subscriber'

    ROLE_CHOICES = [
        (ROLE_CUSTOMER, 'Customer'),
        (ROLE_SUBSCRIBER, 'Subscriber'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='storefront_profile', verbose_name="User")
    display_name = models.CharField(max_length=250, blank=True, verbose_name="Display name")
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_SUBSCRIBER, verbose_name="Role")

    # Addresses (stored as JSON to be flexible)
    billing_address = models.JSONField(default=dict, blank=True, verbose_name="Billing address")
    shipping_address = models.JSONField(default=dict, blank=True, verbose_name="Shipping address")

    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created at")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="Updated at")

    class Meta:
        db_table = 'storefront_customer_profile'
        verbose_name = "Customer profile"
        verbose_name_plural = "Customer profiles"

    def __str__(self):
        return f"{self.display_name or self.user.username} ({self.role})"

    @property
    def billing(self):
        """Billing record with every standard field present"""
        return {**blank_billing_address(), **(self.billing_address or {})}

    @property
    def shipping(self):
        """Shipping record with every standard field present"""
        return {**blank_shipping_address(), **(self.shipping_address or {})}


class Order(models.Model):
    """Customer order as recorded by the commerce platform"""

    STATUS_CHOICES = [
        ('pending', 'Pending payment'),
        ('processing', 'Processing'),
        ('on-hold', 'On hold'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('refunded', 'Refunded'),
        ('failed', 'Failed'),
    ]

    customer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='storefront_orders', verbose_name="Customer")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', verbose_name="Status")
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'), verbose_name="Total")
    currency = models.CharField(max_length=3, default='USD', verbose_name="Currency")
    created_at = models.DateTimeField(default=timezone.now, verbose_name="Created at")

    class Meta:
        db_table = 'storefront_order'
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['customer', 'created_at'], name='storefront_order_cust_idx'),
        ]

    def __str__(self):
        return f"Order #{self.pk} ({self.status})"

    @property
    def item_count(self):
        """Total number of units across all line items"""
        return sum(item.quantity for item in self.items.all())


class OrderItem(models.Model):
    """Line item in an order"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items', verbose_name="Order")
    product_id = models.PositiveIntegerField(verbose_name="Product ID")
    name = models.CharField(max_length=255, verbose_name="Product name")
    quantity = models.PositiveIntegerField(default=1, verbose_name="Quantity")
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'), verbose_name="Line total")

    class Meta:
        db_table = 'storefront_order_item'
        verbose_name = "Order item"
        verbose_name_plural = "Order items"

    def __str__(self):
        return f"{self.order_id} - {self.name} ({self.quantity})"
