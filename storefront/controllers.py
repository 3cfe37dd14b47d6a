"""
Page controllers.

Each controller owns one piece of page behaviour as an explicit state machine
(idle -> loading -> success | error) and talks to the proxies through the
clients in ``api_client``. Rendering is left to whoever subscribes.
"""
import logging
from enum import Enum

import requests

from .api_client import ProxyClientError
from .pagination import ShopPaginator
from .product_utils import product_card
from .session_store import same_id

logger = logging.getLogger(__name__)

CONNECTION_FAILED = 'Connection failed. Please try again.'

CLIENT_ERRORS = (requests.RequestException, ProxyClientError)


class ViewState(Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    SUCCESS = 'success'
    ERROR = 'error'


class Controller:
    def __init__(self):
        self.state = ViewState.IDLE
        self.message = ''
        self._listeners = []

    def subscribe(self, listener):
        self._listeners.append(listener)

    def _transition(self, state, message=''):
        self.state = state
        self.message = message
        for listener in list(self._listeners):
            listener(self)

    @property
    def is_loading(self):
        return self.state is ViewState.LOADING


class AccountFormController(Controller):
    """Submits one account proxy action and reports the outcome inline"""

    default_error = 'Request failed.'
    success_message = None

    def __init__(self, client, session_store=None):
        super().__init__()
        self.client = client
        self.session_store = session_store

    def request(self, **data):
        raise NotImplementedError

    def on_success(self, result):
        pass

    def submit(self, **data):
        # A form that is already submitting ignores further submits
        if self.is_loading:
            return None

        self._transition(ViewState.LOADING)
        try:
            result = self.request(**data)
        except CLIENT_ERRORS as e:
            logger.error(f"{type(self).__name__}: {e}")
            self._transition(ViewState.ERROR, CONNECTION_FAILED)
            return None

        if result.get('success'):
            self.on_success(result)
            self._transition(ViewState.SUCCESS, self.success_message or result.get('message', ''))
        else:
            self._transition(ViewState.ERROR, result.get('message') or self.default_error)
        return result


class LoginController(AccountFormController):
    default_error = 'Login failed.'
    success_message = 'Login successful! Redirecting...'

    def request(self, username='', password='', **extra):
        return self.client.login(username, password)

    def on_success(self, result):
        if self.session_store is not None:
            self.session_store.login(result['user'])


class RegisterController(AccountFormController):
    default_error = 'Registration failed.'

    def request(self, email='', password='', username='', **extra):
        return self.client.register(email, password, username=username)


class AccountDetailsController(AccountFormController):
    default_error = 'Update failed.'

    def request(self, user_id=None, **fields):
        return self.client.update_details(user_id, **fields)

    def on_success(self, result):
        if self.session_store is not None and result.get('user'):
            self.session_store.update_user(result['user'])


class OrdersController(AccountFormController):
    default_error = 'Could not load orders.'

    def __init__(self, client, session_store=None):
        super().__init__(client, session_store)
        self.orders = []

    def request(self, user_id=None, **extra):
        return self.client.get_orders(user_id)

    def on_success(self, result):
        self.orders = result.get('orders') or []


class AddressController(AccountFormController):
    default_error = 'Could not load addresses.'

    def __init__(self, client, session_store=None):
        super().__init__(client, session_store)
        self.billing = {}
        self.shipping = {}

    def request(self, user_id=None, **extra):
        return self.client.get_address(user_id)

    def on_success(self, result):
        self.billing = result.get('billing') or {}
        self.shipping = result.get('shipping') or {}


class ProductListingController(Controller):
    """
    Home page (4 most popular) or shop page (100 newest) product grid.

    On failure the previously loaded products are kept so the page is not left
    empty.
    """

    HOME_LIMIT = 4
    SHOP_LIMIT = 100

    def __init__(self, client, shop=False):
        super().__init__()
        self.client = client
        self.shop = shop
        self.products = []
        self.paginator = ShopPaginator([]) if shop else None

    def load(self):
        limit, orderby = (self.SHOP_LIMIT, 'date') if self.shop else (self.HOME_LIMIT, 'popularity')
        self._transition(ViewState.LOADING)
        try:
            products = self.client.fetch_products(limit, orderby)
        except CLIENT_ERRORS as e:
            logger.error(f"Catalog: connection failed: {e}")
            self._transition(ViewState.ERROR, CONNECTION_FAILED)
            return self.products

        if not products:
            logger.warning("Catalog: no products returned")

        self.products = products
        if self.shop:
            self.paginator = ShopPaginator(products)
        self._transition(ViewState.SUCCESS)
        return products

    def filter(self, category):
        # Home listings are not paged
        if self.paginator is None:
            return
        self.paginator.filter(category)
        self._transition(self.state)

    def go_to(self, page):
        if self.paginator is None:
            return
        self.paginator.go_to(page)
        self._transition(self.state)

    def cards(self):
        visible = self.paginator.page_items() if self.paginator is not None else self.products
        return [product_card(p) for p in visible]


class ProductPageController(Controller):
    """Single product page plus its related-products strip"""

    RELATED_FETCH = 6
    RELATED_LIMIT = 5

    def __init__(self, client):
        super().__init__()
        self.client = client
        self.product = None
        self.related = []

    @property
    def show_related(self):
        return bool(self.related)

    def load(self, product_id):
        if not product_id:
            self._transition(ViewState.ERROR, 'Product not found.')
            return None

        self._transition(ViewState.LOADING)
        try:
            self.product = self.client.fetch_product(product_id)
        except CLIENT_ERRORS as e:
            logger.error(f"Catalog: failed to fetch product {product_id}: {e}")
            self._transition(ViewState.ERROR, 'Error loading product details.')
            return None

        self.load_related(product_id)
        self._transition(ViewState.SUCCESS)
        return self.product

    def load_related(self, product_id):
        try:
            products = self.client.fetch_products(self.RELATED_FETCH)
        except CLIENT_ERRORS as e:
            logger.warning(f"Catalog: failed to fetch related products: {e}")
            self.related = []
            return self.related

        self.related = [p for p in products if not same_id(p.get('id'), product_id)][:self.RELATED_LIMIT]
        return self.related

    def add_to_cart(self, cart, quantity=1):
        return cart.add(self.product, quantity)
