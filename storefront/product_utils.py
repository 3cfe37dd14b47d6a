import html
import re

from django.utils.html import strip_tags

from .session_store import PLACEHOLDER_IMAGE

DEFAULT_CATEGORY = 'Tires'

INS_PATTERN = re.compile(r'<ins\b[^>]*>(.*?)</ins>', re.IGNORECASE | re.DOTALL)


def html_to_text(value):
    """Flatten an HTML fragment to its text content"""
    return html.unescape(strip_tags(value or '')).strip()


def price_html(product):
    return product.get('price_html') or f"${product.get('price', '')}"


def active_price(product):
    """
    Price the customer pays right now.

    Sale prices arrive as ``<del>old</del> <ins>new</ins>``; the ``<ins>`` text
    wins, otherwise the whole fragment is flattened.
    """
    markup = price_html(product)
    match = INS_PATTERN.search(markup)
    if match:
        return html_to_text(match.group(1))
    return html_to_text(markup)


def primary_image(product):
    """(src, alt) of the first image, placeholder when there is none"""
    images = product.get('images') or []
    if images:
        first = images[0]
        return first.get('src') or PLACEHOLDER_IMAGE, first.get('alt') or product.get('name', '')
    return PLACEHOLDER_IMAGE, product.get('name', '')


def primary_category(product):
    categories = product.get('categories') or []
    return categories[0].get('name', DEFAULT_CATEGORY) if categories else DEFAULT_CATEGORY


def plain_description(product):
    return html_to_text(product.get('short_description'))


def full_description(product):
    return product.get('description') or product.get('short_description') or 'No description available.'


def product_card(product):
    """Everything a listing card shows for one product"""
    image_src, image_alt = primary_image(product)
    return {
        'id': product.get('id'),
        'name': product.get('name', ''),
        'price': active_price(product),
        'image': image_src,
        'image_alt': image_alt,
        'category': primary_category(product),
        'description': plain_description(product),
        'url': f"product.html?id={product.get('id')}",
    }
