from typing import List, Dict

from foodlib.client.api import ApiClient
from foodlib.client.cart import CartStore
from foodlib.client.exceptions import ActionRejected
from foodlib.client.pagination import PagedListView
from foodlib.constants.constants import ALL_CUISINE, CUISINES

USER_CATALOG_PAGE_SIZE = 6
ADMIN_DISHES_PAGE_SIZE = 4


def dish_matches(dish: Dict, term: str, cuisine: str = ALL_CUISINE) -> bool:
    term = (term or '').strip().lower()
    if term and term not in str(dish.get('dishName') or '').lower() \
            and term not in str(dish.get('description') or '').lower():
        return False
    return cuisine in (None, '', ALL_CUISINE) or dish.get('cuisine') == cuisine


class CatalogQuery(PagedListView):
    """
    Dish catalog in fetch order, filtered by a search term and a cuisine
    """

    sort_key = None

    def __init__(self, api: ApiClient, cart: CartStore = None, page_size: int = USER_CATALOG_PAGE_SIZE):
        PagedListView.__init__(self, page_size)
        self.api = api
        self.cart = cart
        self.cuisine: str = ALL_CUISINE

    @property
    def dishes(self) -> List[Dict]:
        return self.items

    def cuisine_options(self) -> List[str]:
        """
        Filter choices, the known cuisines first, then free text cuisines of the loaded dishes
        """
        extra = sorted({dish.get('cuisine') for dish in self.items if dish.get('cuisine')} - set(CUISINES))
        return [ALL_CUISINE, *CUISINES, *extra]

    def load(self) -> List[Dict]:
        self.set_items(self.api.get('/dish/getAllDishes'))
        return self.items

    def _apply(self):
        self.filtered = [dish for dish in self.items if dish_matches(dish, self.term, self.cuisine)]

    def search(self, term: str = '', cuisine: str = ALL_CUISINE) -> List[Dict]:
        self.cuisine = cuisine or ALL_CUISINE
        return PagedListView.search(self, term)

    def add_to_cart(self, dish: Dict, quantity) -> List[Dict]:
        if self.cart is None:
            raise ActionRejected('Cart is not available in this view')
        return self.cart.add_item(dish, quantity)

    def dish_reviews(self, dish_id: str) -> List[Dict]:
        return self.api.get(f'/review/getReviewsByDishId/{dish_id}') or []
