import pytest

from foodlib.client.cart import CartStore
from foodlib.client.catalog import CatalogQuery, dish_matches, USER_CATALOG_PAGE_SIZE
from foodlib.client.exceptions import ActionRejected
from foodlib.client.state import AppState, CART_KEY
from foodlib.constants.constants import ALL_CUISINE
from test.utils.fake_api import FakeApi


def make_dishes(count: int = 8):
    cuisines = ['Indian', 'Italian']
    return [
        {
            'id': f'd{i}',
            'dishName': f'Dish {i}',
            'description': 'spicy curry' if i % 3 == 0 else 'mild',
            'cuisine': cuisines[i % 2],
            'price': 10 + i,
            'createdAt': f'2024-01-{20 - i:02d}'
        }
        for i in range(count)
    ]


@pytest.fixture
def catalog():
    state = AppState()
    api = FakeApi({('GET', '/dish/getAllDishes'): make_dishes()}, state=state)
    query = CatalogQuery(api, cart=CartStore(state))
    query.load()
    return query


def test_catalog_keeps_fetch_order(catalog):
    assert catalog.paginator.page_size == USER_CATALOG_PAGE_SIZE
    assert [dish['id'] for dish in catalog.page(1)] == ['d0', 'd1', 'd2', 'd3', 'd4', 'd5']
    assert [dish['id'] for dish in catalog.page(2)] == ['d6', 'd7']
    assert catalog.total_pages() == 2


def test_catalog_search(catalog):
    assert [dish['id'] for dish in catalog.search('CURRY')] == ['d0', 'd3', 'd6']
    assert [dish['id'] for dish in catalog.search('curry', 'Italian')] == ['d3']
    assert [dish['id'] for dish in catalog.search('', 'Indian')] == ['d0', 'd2', 'd4', 'd6']
    assert len(catalog.search('', ALL_CUISINE)) == 8
    assert catalog.search('nothing like this') == []
    assert catalog.total_pages() == 1


def test_dish_matches():
    dish = {'dishName': 'Butter Chicken', 'description': 'Creamy', 'cuisine': 'Indian'}
    assert dish_matches(dish, 'butter')
    assert dish_matches(dish, ' creamy ', 'Indian')
    assert not dish_matches(dish, 'butter', 'Italian')
    assert dish_matches(dish, '', None)


def test_add_to_cart(catalog):
    catalog.add_to_cart(catalog.dishes[1], 2)
    assert catalog.cart.state.get(CART_KEY) == [{'dishId': 'd1', 'dishName': 'Dish 1', 'quantity': 2}]

    with pytest.raises(ActionRejected):
        catalog.add_to_cart(catalog.dishes[1], 0)


def test_add_to_cart_without_cart():
    query = CatalogQuery(FakeApi({('GET', '/dish/getAllDishes'): make_dishes()}))
    with pytest.raises(ActionRejected):
        query.add_to_cart({'id': 'd1'}, 1)


def test_dish_reviews():
    api = FakeApi({('GET', '/review/getReviewsByDishId/d1'): [{'id': 'r1', 'rating': 4}]})
    assert CatalogQuery(api).dish_reviews('d1') == [{'id': 'r1', 'rating': 4}]


def test_cuisine_options():
    api = FakeApi({('GET', '/dish/getAllDishes'): [{'id': 'd1', 'cuisine': 'Thai'}, {'id': 'd2', 'cuisine': 'Indian'}]})
    query = CatalogQuery(api)
    query.load()
    options = query.cuisine_options()
    assert options[0] == ALL_CUISINE
    assert options[-1] == 'Thai'
    assert options.count('Indian') == 1
