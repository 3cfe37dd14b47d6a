"""
Shop listing pagination and category filtering.

All products are fetched once; filtering and paging happen locally without
another round-trip.
"""
from dataclasses import dataclass

from django.core.paginator import EmptyPage, Paginator

PAGE_SIZE = 20
MAX_UNCOLLAPSED_PAGES = 7
PAGE_WINDOW = 1


@dataclass(frozen=True)
class PageControl:
    kind: str  # 'prev', 'page', 'ellipsis' or 'next'
    page: int = None
    current: bool = False
    disabled: bool = False


def matches_category(product, category):
    """Case-insensitive substring match against any category slug or name"""
    needle = category.lower()
    for entry in product.get('categories') or []:
        if needle in (entry.get('slug') or '').lower() or needle in (entry.get('name') or '').lower():
            return True
    return False


class ShopPaginator:
    """ShopPaginationState plus the operations the shop page performs on it"""

    def __init__(self, products, page_size=PAGE_SIZE):
        self.all_products = list(products)
        self.filtered = self.all_products
        self.page_size = page_size
        self.current_page = 1
        self.category = 'all'

    @property
    def paginator(self):
        return Paginator(self.filtered, self.page_size)

    @property
    def total_pages(self):
        # An empty result has no pages at all
        if not self.filtered:
            return 0
        return self.paginator.num_pages

    def filter(self, category):
        """Apply a category filter ('all' clears it) and go back to page 1"""
        category = (category or 'all').strip()
        self.category = category
        if category.lower() == 'all':
            self.filtered = self.all_products
        else:
            self.filtered = [p for p in self.all_products if matches_category(p, category)]
        self.current_page = 1
        return self.page_items()

    def go_to(self, page):
        self.current_page = min(max(1, int(page)), max(1, self.total_pages))
        return self.page_items()

    def page_items(self, page=None):
        page = self.current_page if page is None else page
        try:
            return list(self.paginator.page(page).object_list)
        except EmptyPage:
            return []

    def page_numbers(self):
        """Page numbers to show; None marks an ellipsis"""
        total = self.total_pages
        if total <= 1:
            return []
        if total <= MAX_UNCOLLAPSED_PAGES:
            return list(range(1, total + 1))

        current = self.current_page
        numbers = [1]
        if current - PAGE_WINDOW > 2:
            numbers.append(None)
        numbers.extend(range(max(2, current - PAGE_WINDOW), min(total - 1, current + PAGE_WINDOW) + 1))
        if current + PAGE_WINDOW < total - 1:
            numbers.append(None)
        numbers.append(total)
        return numbers

    def controls(self):
        """Prev, numbered pages with ellipses, next; empty for a single page"""
        numbers = self.page_numbers()
        if not numbers:
            return []

        current = self.current_page
        controls = [PageControl('prev', page=current - 1, disabled=current == 1)]
        for number in numbers:
            if number is None:
                controls.append(PageControl('ellipsis', disabled=True))
            else:
                controls.append(PageControl('page', page=number, current=number == current))
        controls.append(PageControl('next', page=current + 1, disabled=current == self.total_pages))
        return controls
