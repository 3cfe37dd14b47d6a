# Account proxy
# Login, registration, profile and order lookups against the account platform

import json
import logging
from enum import Enum

from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.utils.html import strip_tags
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from . import account_services as platform
from .conf import account_settings
from .cors import AllowListCorsMixin
from .serializers import (
    AccountDetailsSerializer, AccountUserSerializer, OrderSummarySerializer,
)

logger = logging.getLogger(__name__)


class AccountAction(Enum):
    LOGIN = 'login'
    REGISTER = 'register'
    GET_ORDERS = 'get_orders'
    GET_ADDRESS = 'get_address'
    GET_DETAILS = 'get_details'
    UPDATE_DETAILS = 'update_details'

    @classmethod
    def from_param(cls, value):
        """Map the ``action`` query parameter to a member; None when unknown"""
        try:
            return cls(value)
        except ValueError:
            return None


def failure(message):
    return {'success': False, 'message': message}


def extract_payload(request):
    """
    Request data as a dict.

    The raw body is tried as JSON first; when that does not give a non-empty
    object the conventional form fields are used instead.
    """
    try:
        data = json.loads(request.body) if request.body else None
    except (ValueError, UnicodeDecodeError):
        data = None

    if not data and request.POST:
        data = request.POST.dict()

    return data if isinstance(data, dict) else {}


def require_user_id(payload, request):
    """The target user id from the body or the query string"""
    raw = payload.get('user_id') or request.GET.get('user_id')
    try:
        user_id = int(raw)
    except (TypeError, ValueError):
        user_id = 0

    if user_id <= 0:
        raise platform.PlatformError('User ID required', code='missing_user_id')
    return user_id


def _text(payload, key):
    value = payload.get(key)
    return '' if value is None else str(value)


def handle_login(payload, request):
    username = _text(payload, 'username')
    password = _text(payload, 'password')

    if not username or not password:
        return failure('Username and password are required.')

    user = platform.check_credentials(username, password)
    return {
        'success': True,
        'user': AccountUserSerializer(user).data,
        'message': 'Login successful',
    }


def handle_register(payload, request):
    email = _text(payload, 'email').strip()
    username = _text(payload, 'username').strip()
    password = _text(payload, 'password')

    if not platform.is_email(email):
        return failure('Invalid email address.')

    # Use part of email as fallback username
    if not username:
        username = email.split('@')[0]

    if platform.username_exists(username) or platform.email_exists(email):
        return failure('Account already exists (username or email taken).')

    min_length = account_settings()['MIN_PASSWORD_LENGTH']
    if len(password) < min_length:
        return failure(f'Password must be at least {min_length} characters.')

    if platform.customer_accounts_enabled():
        user = platform.create_customer(email, username, password)
        message = 'Registration successful! Please log in.'
    else:
        user = platform.create_account(username, password, email)
        message = 'Account created successfully.'

    platform.update_user(user, display_name=username, first_name=username)
    return {'success': True, 'message': message}


def handle_get_orders(payload, request):
    user_id = require_user_id(payload, request)
    orders = platform.recent_orders(user_id)
    return {
        'success': True,
        'orders': OrderSummarySerializer(orders, many=True).data,
    }


def handle_get_address(payload, request):
    user = platform.get_user(require_user_id(payload, request))
    if user is None:
        return failure('User not found')

    billing, shipping = platform.customer_addresses(user)
    return {'success': True, 'billing': billing, 'shipping': shipping}


def handle_get_details(payload, request):
    user = platform.get_user(require_user_id(payload, request))
    if user is None:
        return failure('User not found')

    return {'success': True, 'user': AccountDetailsSerializer(user).data}


def handle_update_details(payload, request):
    user = platform.get_user(require_user_id(payload, request))
    if user is None:
        return failure('Invalid user ID.')

    changes = {}
    for field in ('first_name', 'last_name', 'display_name'):
        value = _text(payload, field)
        if value:
            changes[field] = platform.sanitize_text_field(value)

    email = _text(payload, 'email')
    if email:
        email = platform.sanitize_email(email)
        if not platform.is_email(email):
            return failure('Invalid email address.')
        changes['email'] = email

    # Password change: nothing is applied unless the current password matches
    password_current = _text(payload, 'password_current')
    password_new = _text(payload, 'password_new')
    if password_current and password_new:
        if not user.check_password(password_current):
            logger.warning(f"User {user.pk}: password change rejected")
            return failure('Current password is incorrect.')
        changes['password'] = password_new

    platform.update_user(user, **changes)
    user.refresh_from_db()

    return {
        'success': True,
        'message': 'Account details updated successfully.',
        'user': AccountUserSerializer(user).data,
    }


ACTION_HANDLERS = {
    AccountAction.LOGIN: handle_login,
    AccountAction.REGISTER: handle_register,
    AccountAction.GET_ORDERS: handle_get_orders,
    AccountAction.GET_ADDRESS: handle_get_address,
    AccountAction.GET_DETAILS: handle_get_details,
    AccountAction.UPDATE_DETAILS: handle_update_details,
}


@method_decorator(csrf_exempt, name='dispatch')
class AccountProxyView(AllowListCorsMixin, View):
    """Single endpoint dispatching on the ``action`` query parameter"""

    http_method_names = ['get', 'post', 'options']
    cors_allowed_methods = ('POST', 'OPTIONS')

    def get_cors_allowed_origins(self):
        return account_settings()['ALLOWED_ORIGINS']

    def options(self, request, *args, **kwargs):
        return HttpResponse(status=200)

    def post(self, request):
        action = AccountAction.from_param(request.GET.get('action', ''))
        if action is None:
            return JsonResponse(failure('Invalid action.'))

        payload = extract_payload(request)
        try:
            result = ACTION_HANDLERS[action](payload, request)
        except platform.PlatformError as e:
            logger.info(f"Account proxy: {action.value} failed ({e.code})")
            result = failure(strip_tags(e.message))

        return JsonResponse(result)

    # Read actions also accept their parameters in the query string
    get = post
