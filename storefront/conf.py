"""
Server-held proxy configuration.

Values come from ``settings.CATALOG_PROXY`` / ``settings.ACCOUNT_PROXY`` and are
merged over the defaults below, so a partial override in tests or a local
settings module keeps working.
"""
from django.conf import settings

CATALOG_DEFAULTS = {
    'BASE_URL': 'https://www.globaltireservices.com',
    'ENDPOINT': '/wp-json/wc/v3/products',
    'CONSUMER_KEY': '',
    'CONSUMER_SECRET': '',
    'TIMEOUT': 30,
    'VERIFY_SSL': True,
    'ALLOWED_ORIGINS': [],
}

ACCOUNT_DEFAULTS = {
    'ALLOWED_ORIGINS': [],
    'CUSTOMER_ACCOUNTS_ENABLED': True,
    'ORDERS_ENABLED': True,
    'ORDERS_LIMIT': 20,
    'MIN_PASSWORD_LENGTH': 6,
}


def catalog_settings():
    """Catalog proxy settings: upstream location, credentials and CORS origins"""
    return {**CATALOG_DEFAULTS, **getattr(settings, 'CATALOG_PROXY', {})}


def account_settings():
    """Account proxy settings: feature switches, limits and CORS origins"""
    return {**ACCOUNT_DEFAULTS, **getattr(settings, 'ACCOUNT_PROXY', {})}
