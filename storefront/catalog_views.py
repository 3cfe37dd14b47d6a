# Catalog proxy
# Read-only passthrough to the external product API; credentials never leave the server

import json
import logging
from urllib.parse import quote, urlencode

import requests
from django.http import HttpResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from .conf import catalog_settings
from .cors import AllowListCorsMixin

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = 'application/json; charset=UTF-8'

METHOD_NOT_ALLOWED_BODY = json.dumps(
    {'error': 'Method not allowed. Read-only access.'},
    separators=(',', ':'),
)

REDACTED = '[redacted]'

EMPTY_IDS = ('', '0')


def build_upstream_url(query, config):
    """
    Build the upstream URL for a catalog query.

    ``query`` is a list of ``(name, value)`` pairs. A non-empty ``id`` turns the
    request into a single-resource fetch (``<endpoint>/<id>``) and is removed
    from the query string; the consumer key and secret are appended last.
    When ``id`` is repeated the last value wins, as with ``QueryDict.get``.
    """
    ids = [value for name, value in query if name == 'id']
    resource_id = ids[-1] if ids else ''
    # "0" counts as no id and stays in the query like any other parameter
    if resource_id in EMPTY_IDS:
        resource_id = ''

    if resource_id:
        params = [(name, value) for name, value in query if name != 'id']
    else:
        params = list(query)

    path = config['BASE_URL'].rstrip('/') + config['ENDPOINT']
    if resource_id:
        path += '/' + quote(str(resource_id), safe='')

    params.append(('consumer_key', config['CONSUMER_KEY']))
    params.append(('consumer_secret', config['CONSUMER_SECRET']))

    return f"{path}?{urlencode(params)}"


def redact_credentials(message, config):
    """Remove the consumer key and secret from text bound for the caller"""
    for secret in (config['CONSUMER_KEY'], config['CONSUMER_SECRET']):
        if secret:
            message = message.replace(secret, REDACTED)
            message = message.replace(quote(secret, safe=''), REDACTED)
    return message


def proxy_error_response(message, status=500):
    return HttpResponse(
        json.dumps({'error': f'Proxy Error: {message}'}),
        status=status,
        content_type=JSON_CONTENT_TYPE,
    )


@method_decorator(csrf_exempt, name='dispatch')
class CatalogProxyView(AllowListCorsMixin, View):
    """Forward read-only product queries to the catalog API"""

    http_method_names = ['get', 'options']
    cors_allowed_methods = ('GET', 'OPTIONS')

    def get_cors_allowed_origins(self):
        return catalog_settings()['ALLOWED_ORIGINS']

    def options(self, request, *args, **kwargs):
        return HttpResponse(status=204)

    def http_method_not_allowed(self, request, *args, **kwargs):
        logger.warning(f"Catalog proxy: rejected {request.method} request")
        return HttpResponse(
            METHOD_NOT_ALLOWED_BODY,
            status=405,
            content_type=JSON_CONTENT_TYPE,
        )

    def get(self, request):
        config = catalog_settings()
        url = build_upstream_url(self._query_pairs(request), config)

        try:
            upstream = requests.get(
                url,
                timeout=config['TIMEOUT'],
                verify=config['VERIFY_SSL'],
                allow_redirects=True,
            )
        except requests.RequestException as e:
            message = redact_credentials(str(e), config)
            logger.error(f"Catalog proxy: upstream request failed: {message}")
            return proxy_error_response(message)

        logger.debug(f"Catalog proxy: upstream answered {upstream.status_code}")
        return HttpResponse(
            upstream.content,
            status=upstream.status_code,
            content_type=JSON_CONTENT_TYPE,
        )

    @staticmethod
    def _query_pairs(request):
        return [
            (name, value)
            for name, values in request.GET.lists()
            for value in values
        ]
