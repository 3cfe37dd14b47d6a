# Account platform services
# User, customer and order primitives backing the account proxy

import hashlib
import logging
from urllib.parse import urlencode

from django.contrib.auth import authenticate
from django.contrib.auth.models import User
from django.contrib.auth.validators import UnicodeUsernameValidator
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.utils.html import strip_tags

from .conf import account_settings
from .models import (
    CustomerProfile, Order, blank_billing_address, blank_shipping_address,
)

logger = logging.getLogger(__name__)

GRAVATAR_URL = 'https://secure.gravatar.com/avatar/'


class PlatformError(Exception):
    """Business failure reported by the account platform"""

    def __init__(self, message, code='error'):
        super().__init__(message)
        self.message = message
        self.code = code


class OrdersUnavailable(PlatformError):
    """The order subsystem is switched off"""


def is_email(value):
    try:
        validate_email(value)
    except ValidationError:
        return False
    return True


def sanitize_text_field(value):
    """Strip markup and surrounding whitespace from a profile field"""
    return ' '.join(strip_tags(str(value)).split())


def sanitize_email(value):
    return str(value).strip().lower()


def avatar_url(user, size=96):
    """Gravatar URL for the user's email, mystery-person fallback"""
    digest = hashlib.md5(user.email.strip().lower().encode('utf-8')).hexdigest()
    query = urlencode({'s': size, 'd': 'mm', 'r': 'g'})
    return f"{GRAVATAR_URL}{digest}?{query}"


def get_profile(user):
    """Stored profile, or an unsaved one with defaults when the user has none"""
    profile = CustomerProfile.objects.filter(user=user).first()
    if profile is None:
        profile = CustomerProfile(user=user, display_name=user.username)
    return profile


def get_display_name(user):
    return get_profile(user).display_name or user.username


def username_exists(username):
    return User.objects.filter(username__iexact=username).exists()


def email_exists(email):
    return User.objects.filter(email__iexact=email).exists()


def get_user(user_id):
    """Look up a user by the id the caller supplied; None when unknown"""
    try:
        return User.objects.get(pk=int(user_id))
    except (TypeError, ValueError, User.DoesNotExist):
        return None


def check_credentials(login, password):
    """
    Verify a username (or email address) and password pair.

    Raises PlatformError with an HTML-formatted message on failure, the same
    way the CMS login form reports it.
    """
    username = login
    if '@' in login:
        match = User.objects.filter(email__iexact=login).first()
        if match is None:
            raise PlatformError(
                '<strong>Error:</strong> Unknown email address. Check again or try your username.',
                code='invalid_email',
            )
        username = match.username
    elif not User.objects.filter(username=login).exists():
        raise PlatformError(
            f'<strong>Error:</strong> The username <strong>{login}</strong> is not registered on this site. '
            'If you are unsure of your username, try your email address instead.',
            code='invalid_username',
        )

    user = authenticate(username=username, password=password)
    if user is None:
        raise PlatformError(
            f'<strong>Error:</strong> The password you entered for the username <strong>{username}</strong> '
            'is incorrect. <a href="/my-account/lost-password/">Lost your password?</a>',
            code='incorrect_password',
        )

    logger.info(f"User {user.pk} authenticated")
    return user


def _validate_username(username):
    try:
        UnicodeUsernameValidator()(username)
    except ValidationError:
        raise PlatformError('Please enter a valid account username.', code='registration-error-invalid-username')


@transaction.atomic
def create_customer(email, username, password):
    """Create a customer-class account with empty billing/shipping records"""
    _validate_username(username)
    if email_exists(email):
        raise PlatformError(
            'An account is already registered with your email address.',
            code='registration-error-email-exists',
        )

    user = User.objects.create_user(username=username, email=email, password=password)
    CustomerProfile.objects.create(
        user=user,
        display_name=username,
        role=CustomerProfile.ROLE_CUSTOMER,
        billing_address=blank_billing_address(),
        shipping_address=blank_shipping_address(),
    )
    logger.info(f"Customer account {user.pk} created")
    return user


@transaction.atomic
def create_account(username, password, email):
    """Create a plain (non-customer) account"""
    _validate_username(username)
    if username_exists(username):
        raise PlatformError('Sorry, that username already exists!', code='existing_user_login')

    user = User.objects.create_user(username=username, email=email, password=password)
    CustomerProfile.objects.create(
        user=user,
        display_name=username,
        role=CustomerProfile.ROLE_SUBSCRIBER,
    )
    logger.info(f"Account {user.pk} created")
    return user


def customer_accounts_enabled():
    return account_settings()['CUSTOMER_ACCOUNTS_ENABLED']


def update_user(user, first_name=None, last_name=None, display_name=None, email=None, password=None):
    """Apply every supplied change to the user in one transaction"""
    if email is not None:
        if User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
            raise PlatformError('Sorry, that email address is already used!', code='existing_user_email')

    with transaction.atomic():
        if first_name is not None:
            user.first_name = first_name
        if last_name is not None:
            user.last_name = last_name
        if email is not None:
            user.email = email
        if password is not None:
            user.set_password(password)
        user.save()

        if display_name is not None:
            profile, created = CustomerProfile.objects.get_or_create(
                user=user,
                defaults={'display_name': display_name},
            )
            if not created:
                profile.display_name = display_name
                profile.save(update_fields=['display_name', 'updated_at'])

    logger.info(f"User {user.pk} updated")
    return user


def recent_orders(user_id, limit=None):
    """Most recent orders for a customer, newest first"""
    config = account_settings()
    if not config['ORDERS_ENABLED']:
        raise OrdersUnavailable('WooCommerce not active', code='orders_unavailable')

    limit = limit or config['ORDERS_LIMIT']
    return list(
        Order.objects.filter(customer_id=user_id)
        .prefetch_related('items')
        .order_by('-created_at', '-pk')[:limit]
    )


def customer_addresses(user):
    profile = get_profile(user)
    return profile.billing, profile.shipping
