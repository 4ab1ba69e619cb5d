import pytest

from foodlib.client.exceptions import ApiError, FormValidationError, NotLoggedIn
from foodlib.client.reviews import ReviewAggregation, MyReviews, validate_review
from foodlib.client.state import AppState, SESSION_KEY
from foodlib.constants.constants import UNKNOWN_DISH, UNKNOWN
from test.utils.fake_api import FakeApi

REVIEWS = [
    {'id': 'r1', 'dish': 'd1', 'user': 'u1', 'rating': 5, 'createdAt': '2024-01-01'},
    {'id': 'r2', 'dish': 'gone', 'user': 'u2', 'rating': 2, 'createdAt': '2024-01-02'},
    {'id': 'r3', 'dish': 'd2', 'user': 'ghost', 'rating': 4, 'createdAt': '2024-01-03'},
]
DISHES = [{'id': 'd1', 'dishName': 'Paneer Tikka'}, {'id': 'd2', 'dishName': 'Sushi'}]
USERS = [{'id': 'u1', 'username': 'alice'}, {'id': 'u2', 'username': 'bob'}]


def test_aggregation_for_admin():
    api = FakeApi({
        ('GET', '/review/getAllReviews'): REVIEWS,
        ('GET', '/dish/getAllDishes'): DISHES,
        ('GET', '/user/getAllUsers'): USERS
    })
    aggregation = ReviewAggregation(api)
    reviews = aggregation.load()
    assert [(review['dishName'], review['username']) for review in reviews] == [
        ('Paneer Tikka', 'alice'), (UNKNOWN_DISH, 'bob'), ('Sushi', UNKNOWN)
    ]
    assert reviews[0]['rating'] == 5

    assert [review['id'] for review in aggregation.search('BOB')] == ['r2']
    assert [review['id'] for review in aggregation.search('sushi')] == ['r3']
    assert [review['id'] for review in aggregation.search('unknown')] == ['r2', 'r3']


def test_aggregation_resolves_authors_one_by_one():
    api = FakeApi({
        ('GET', '/review/getReviewsByDishId/d1'): REVIEWS[:1] + REVIEWS[2:],
        ('GET', '/dish/getAllDishes'): DISHES,
        ('GET', '/user/getAllUsers'): ApiError('forbidden', status_code=403),
        ('GET', '/user/getUserById/u1'): USERS[0],
        ('GET', '/user/getUserById/ghost'): ApiError('not found', status_code=404)
    })
    reviews = ReviewAggregation(api).load('d1')
    assert [review['username'] for review in reviews] == ['alice', UNKNOWN]
    assert api.called('GET', '/user/getUserById/u1') == 1


def test_view_dish_and_user():
    api = FakeApi({
        ('GET', '/dish/getDishById/d1'): DISHES[0],
        ('GET', '/dish/getDishById/gone'): ApiError('not found', status_code=404),
        ('GET', '/user/getUserById/u1'): USERS[0]
    })
    aggregation = ReviewAggregation(api)
    assert aggregation.view_dish(REVIEWS[0]) == DISHES[0]
    assert aggregation.view_dish(REVIEWS[1]) is None
    assert aggregation.view_dish({'id': 'r9'}) is None
    assert aggregation.view_user(REVIEWS[0]) == USERS[0]
    assert aggregation.view_user({'id': 'r9'}) is None


def test_validate_review():
    assert validate_review('d1', 5, 'Nice') == {}
    errors = validate_review('', 0, '  ')
    assert set(errors) == {'dish', 'rating', 'reviewText'}
    assert 'rating' in validate_review('d1', True, 'Nice')
    assert 'rating' in validate_review('d1', 6, 'Nice')


def logged_in_state():
    state = AppState()
    state.set(SESSION_KEY, {'userId': 'u1', 'token': 't', 'role': 'User'})
    return state


def test_my_reviews_submit_and_delete():
    state = logged_in_state()
    api = FakeApi({
        ('GET', '/review/getReviewsByUserId/u1'): [REVIEWS[0]],
        ('GET', '/dish/getAllDishes'): DISHES,
        ('POST', '/review/addReview'): lambda body: {'id': 'r9', 'user': 'u1', **body},
        ('DELETE', '/review/deleteReview/r1'): {'id': 'r1'}
    }, state=state)
    my_reviews = MyReviews(api, state)

    assert [(review['id'], review['dishName']) for review in my_reviews.list()] == [('r1', 'Paneer Tikka')]
    review = my_reviews.submit('d2', 4, '  Fresh fish  ')
    assert api.calls[-1][2] == {'dish': 'd2', 'rating': 4, 'reviewText': 'Fresh fish'}
    assert review['id'] == 'r9'
    assert review['dishName'] == 'Sushi'
    assert [item['id'] for item in my_reviews.reviews] == ['r1', 'r9']

    assert [item['id'] for item in my_reviews.delete(my_reviews.reviews[0])] == ['r9']


def test_my_reviews_unknown_dish_and_view_dish():
    state = logged_in_state()
    api = FakeApi({
        ('GET', '/review/getReviewsByUserId/u1'): [REVIEWS[0], {**REVIEWS[1], 'user': 'u1'}],
        ('GET', '/dish/getAllDishes'): DISHES,
        ('GET', '/dish/getDishById/gone'): ApiError('not found', status_code=404),
        ('GET', '/dish/getDishById/d1'): DISHES[0]
    }, state=state)
    my_reviews = MyReviews(api, state)

    reviews = my_reviews.list()
    assert [review['dishName'] for review in reviews] == ['Paneer Tikka', UNKNOWN_DISH]
    assert api.called('GET', '/dish/getDishById/gone') == 1

    assert my_reviews.view_dish(reviews[0]) == DISHES[0]
    assert my_reviews.view_dish(reviews[1]) is None
    assert my_reviews.view_dish({'id': 'r9'}) is None


def test_my_reviews_submit_without_list_resolves_dish():
    state = logged_in_state()
    api = FakeApi({
        ('POST', '/review/addReview'): lambda body: {'id': 'r9', 'user': 'u1', **body},
        ('GET', '/dish/getDishById/d2'): DISHES[1]
    }, state=state)
    review = MyReviews(api, state).submit('d2', 5, 'Great')
    assert review['dishName'] == 'Sushi'



def test_my_reviews_validation_blocks_request():
    state = logged_in_state()
    api = FakeApi({}, state=state)
    with pytest.raises(FormValidationError) as error:
        MyReviews(api, state).submit('d1', 9, 'Too good')
    assert set(error.value.errors) == {'rating'}
    assert api.calls == []


def test_my_reviews_requires_login():
    api = FakeApi({})
    with pytest.raises(NotLoggedIn):
        MyReviews(api, AppState()).submit('d1', 5, 'Nice')
    with pytest.raises(NotLoggedIn):
        MyReviews(api, AppState()).list()
    assert api.calls == []
