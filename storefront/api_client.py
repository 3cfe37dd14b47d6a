# Proxy clients
# Thin HTTP wrappers used by the page controllers to talk to the two proxies

import logging

import requests

logger = logging.getLogger(__name__)


class ProxyClientError(Exception):
    """Proxy answered with a non-2xx status or a body that is not JSON"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class ProxyClient:
    """Base class for proxy clients"""

    def __init__(self, endpoint, session=None, timeout=None):
        self.endpoint = endpoint
        self.session = session or requests.Session()
        self.timeout = timeout

    def _decode(self, response):
        if not response.ok:
            raise ProxyClientError(f'API returned status {response.status_code}', response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise ProxyClientError(f'Invalid JSON from proxy: {e}', response.status_code)


class CatalogClient(ProxyClient):
    """Reads products through the catalog proxy"""

    def fetch_products(self, per_page=4, orderby='date', order='desc', **params):
        query = {'per_page': per_page, 'orderby': orderby, 'order': order, **params}
        response = self.session.get(self.endpoint, params=query, timeout=self.timeout)
        products = self._decode(response)
        logger.debug(f"Catalog: fetched {len(products)} products")
        return products

    def fetch_product(self, product_id):
        response = self.session.get(self.endpoint, params={'id': product_id}, timeout=self.timeout)
        return self._decode(response)


class AccountClient(ProxyClient):
    """Calls the account proxy actions"""

    def call(self, action, **data):
        response = self.session.post(
            self.endpoint,
            params={'action': action},
            json=data,
            timeout=self.timeout,
        )
        return self._decode(response)

    def login(self, username, password):
        return self.call('login', username=username, password=password)

    def register(self, email, password, username=''):
        return self.call('register', email=email, password=password, username=username)

    def get_orders(self, user_id):
        return self.call('get_orders', user_id=user_id)

    def get_address(self, user_id):
        return self.call('get_address', user_id=user_id)

    def get_details(self, user_id):
        return self.call('get_details', user_id=user_id)

    def update_details(self, user_id, **fields):
        return self.call('update_details', user_id=user_id, **fields)
