from django.contrib.auth.models import User
from django.utils import timezone
from rest_framework import serializers

from . import account_services
from .models import Order


class AccountUserSerializer(serializers.ModelSerializer):
    """Sanitized user record handed back to the browser (no credentials)"""
    display_name = serializers.SerializerMethodField()
    avatar_url = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name', 'first_name', 'last_name', 'avatar_url']

    def get_display_name(self, obj):
        return account_services.get_display_name(obj)

    def get_avatar_url(self, obj):
        return account_services.avatar_url(obj)


class AccountDetailsSerializer(AccountUserSerializer):
    """Profile fields shown on the account details form"""

    class Meta(AccountUserSerializer.Meta):
        fields = ['first_name', 'last_name', 'display_name', 'email', 'avatar_url']


class OrderSummarySerializer(serializers.ModelSerializer):
    total = serializers.SerializerMethodField()
    date_created = serializers.SerializerMethodField()
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ['id', 'status', 'total', 'currency', 'date_created', 'item_count']

    def get_total(self, obj):
        return f"{obj.total:.2f}"

    def get_date_created(self, obj):
        return timezone.localtime(obj.created_at).strftime('%Y-%m-%d %H:%M:%S')

    def get_item_count(self, obj):
        return obj.item_count
