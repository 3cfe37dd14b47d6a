"""
Client session and cart store.

Two independent pieces of durable per-browser state: the logged-in user record
and the shopping cart. Both live in a key/value storage with string values
(browser-local storage semantics); a Django session can stand in for it on the
server side.
"""
import json
import logging
import re
import time
from dataclasses import asdict, dataclass, field, fields

logger = logging.getLogger(__name__)

CART_KEY = 'globaltire_cart'
USER_KEY = 'gt_user'
LOGIN_TIME_KEY = 'gt_login_time'

PLACEHOLDER_IMAGE = 'images/placeholder-tire.png'


class InvalidProductError(ValueError):
    """Product record without an id"""


class MemoryStorage:
    """In-process key/value storage"""

    def __init__(self, initial=None):
        self._data = dict(initial or {})

    def get_item(self, key):
        return self._data.get(key)

    def set_item(self, key, value):
        self._data[key] = str(value)

    def remove_item(self, key):
        self._data.pop(key, None)


class DjangoSessionStorage:
    """Storage backed by a Django session (``request.session``)"""

    def __init__(self, session):
        self.session = session

    def get_item(self, key):
        return self.session.get(key)

    def set_item(self, key, value):
        self.session[key] = str(value)
        self.session.modified = True

    def remove_item(self, key):
        if key in self.session:
            del self.session[key]
            self.session.modified = True


def parse_price(value):
    """Plain number from any price representation ('$1,299.00' -> 1299.0)"""
    if value in (None, ''):
        return 0.0
    cleaned = re.sub(r'[^0-9.]', '', str(value))
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def same_id(a, b):
    return str(a) == str(b)


@dataclass
class CartItem:
    id: object
    name: str = 'Product'
    price: float = 0.0
    image: str = PLACEHOLDER_IMAGE
    quantity: int = 1
    permalink: str = '#'

    @classmethod
    def from_product(cls, product, quantity=1):
        images = product.get('images') or []
        return cls(
            id=product.get('id') or product.get('ID'),
            name=product.get('name') or 'Product',
            price=parse_price(product.get('price')),
            image=images[0].get('src', PLACEHOLDER_IMAGE) if images else PLACEHOLDER_IMAGE,
            quantity=max(1, int(quantity)),
            permalink=product.get('permalink') or '#',
        )

    @classmethod
    def from_dict(cls, data):
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @property
    def line_total(self):
        return self.price * self.quantity


class CartStore:
    """
    Shopping cart persisted as a JSON list under a single storage key.

    Every mutation writes the full list back and then notifies subscribers
    (counters, badges, the cart page).
    """

    def __init__(self, storage, key=CART_KEY):
        self.storage = storage
        self.key = key
        self._listeners = []
        self._items = self._load()

    def _load(self):
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError('cart is not a list')
            return [CartItem.from_dict(entry) for entry in data]
        except (ValueError, TypeError, AttributeError) as e:
            logger.error(f"Cart: error parsing saved cart, resetting: {e}")
            self.storage.remove_item(self.key)
            return []

    def reload(self):
        self._items = self._load()
        self._notify()

    @property
    def items(self):
        return list(self._items)

    @property
    def total_items(self):
        return sum(int(item.quantity or 0) for item in self._items)

    @property
    def subtotal(self):
        return sum(item.line_total for item in self._items)

    def get(self, product_id):
        for item in self._items:
            if same_id(item.id, product_id):
                return item
        return None

    def subscribe(self, listener):
        """Register ``listener(store)``; returns a callable that unsubscribes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add(self, product, quantity=1):
        if not product or not (product.get('id') or product.get('ID')):
            raise InvalidProductError('Cart: invalid product object')

        product_id = product.get('id') or product.get('ID')
        existing = self.get(product_id)
        if existing:
            existing.quantity = max(1, existing.quantity + int(quantity))
        else:
            self._items.append(CartItem.from_product(product, quantity))

        logger.debug(f"Cart: added product {product_id}")
        self._commit()
        return self.get(product_id)

    def remove(self, product_id):
        self._items = [item for item in self._items if not same_id(item.id, product_id)]
        self._commit()

    def update_quantity(self, product_id, quantity):
        item = self.get(product_id)
        if item is None:
            return None
        item.quantity = max(1, int(quantity))
        self._commit()
        return item

    def clear(self):
        self._items = []
        self._commit()

    def _commit(self):
        self.storage.set_item(self.key, json.dumps([asdict(item) for item in self._items]))
        self._notify()

    def _notify(self):
        for listener in list(self._listeners):
            listener(self)


@dataclass
class UserSession:
    id: object = None
    email: str = ''
    display_name: str = ''
    first_name: str = ''
    last_name: str = ''
    avatar_url: str = ''
    extra: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data):
        known = {f.name for f in fields(cls)} - {'extra'}
        return cls(
            extra={k: v for k, v in data.items() if k not in known},
            **{k: v for k, v in data.items() if k in known},
        )

    def to_dict(self):
        data = asdict(self)
        extra = data.pop('extra')
        return {**extra, **data}

    @property
    def greeting_name(self):
        """Name shown in the header account link"""
        return self.first_name or self.display_name or 'My Account'


class UserSessionStore:
    """
    Advisory login state: the user record and the login timestamp.

    Nothing here is re-verified against the server; presence of the record is
    what "logged in" means.
    """

    def __init__(self, storage, user_key=USER_KEY, login_time_key=LOGIN_TIME_KEY):
        self.storage = storage
        self.user_key = user_key
        self.login_time_key = login_time_key

    def login(self, user, now=None):
        if isinstance(user, UserSession):
            user = user.to_dict()
        timestamp = int((now if now is not None else time.time()) * 1000)
        self.storage.set_item(self.user_key, json.dumps(user))
        self.storage.set_item(self.login_time_key, timestamp)
        logger.info(f"Session: user {user.get('id')} logged in")
        return UserSession.from_dict(user)

    def update_user(self, user):
        """Replace the stored record, keeping the original login time"""
        if isinstance(user, UserSession):
            user = user.to_dict()
        self.storage.set_item(self.user_key, json.dumps(user))

    def current_user(self):
        raw = self.storage.get_item(self.user_key)
        if not raw:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError('user record is not an object')
        except ValueError as e:
            logger.error(f"Session: corrupt user record, clearing: {e}")
            self.logout()
            return None
        return UserSession.from_dict(data)

    @property
    def is_logged_in(self):
        return self.current_user() is not None

    @property
    def login_time(self):
        raw = self.storage.get_item(self.login_time_key)
        try:
            return int(raw) if raw else None
        except ValueError:
            return None

    def logout(self):
        self.storage.remove_item(self.user_key)
        self.storage.remove_item(self.login_time_key)
