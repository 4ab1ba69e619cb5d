from typing import List, Dict

from foodlib.client.api import ApiClient
from foodlib.client.exceptions import ApiError, FormValidationError, NotLoggedIn
from foodlib.client.pagination import PagedListView
from foodlib.client.state import AppState, SESSION_KEY
from foodlib.constants.constants import UNKNOWN_DISH, UNKNOWN, MIN_RATING, MAX_RATING
from foodlib.utils.logger import logger

REVIEWS_PAGE_SIZE = 5


class ReviewAggregation(PagedListView):
    """
    Reviews joined to dish names and usernames, unresolved references show as placeholders
    """

    def __init__(self, api: ApiClient, page_size: int = REVIEWS_PAGE_SIZE):
        PagedListView.__init__(self, page_size)
        self.api = api

    @property
    def reviews(self) -> List[Dict]:
        return self.items

    def _get_users_by_id(self, user_ids) -> Dict:
        try:
            return {user['id']: user for user in self.api.get('/user/getAllUsers') or []}
        except ApiError as error:
            # only Admin sees the whole list, others resolve authors one by one
            logger.debug(f'_get_users_by_id ::: user list is not available, {error.status_code=}')
        users = {}
        for user_id in user_ids:
            try:
                users[user_id] = self.api.get_or_none(f'/user/getUserById/{user_id}')
            except ApiError as error:
                logger.warning(f'_get_users_by_id ::: author {user_id} is not resolved, {error.status_code=}')
                users[user_id] = None
        return users

    def load(self, dish_id: str = None) -> List[Dict]:
        path = f'/review/getReviewsByDishId/{dish_id}' if dish_id else '/review/getAllReviews'
        reviews = self.api.get(path) or []
        dishes = {dish['id']: dish for dish in self.api.get('/dish/getAllDishes') or []}
        users = self._get_users_by_id(sorted({review.get('user') for review in reviews if review.get('user')}))
        self.set_items([join_review(review, dishes, users) for review in reviews])
        return self.items

    def matches(self, item: Dict, term: str) -> bool:
        return term in item['dishName'].lower() or term in item['username'].lower()

    def view_dish(self, review: Dict):
        if not review.get('dish'):
            return None
        return self.api.get_or_none(f"/dish/getDishById/{review['dish']}")

    def view_user(self, review: Dict):
        if not review.get('user'):
            return None
        return self.api.get_or_none(f"/user/getUserById/{review['user']}")


def join_review(review: Dict, dishes: Dict, users: Dict) -> Dict:
    dish = dishes.get(review.get('dish'))
    user = users.get(review.get('user'))
    return {
        **review,
        'dishName': dish.get('dishName') if dish else UNKNOWN_DISH,
        'username': (user or {}).get('username') or UNKNOWN
    }


def validate_review(dish_id, rating, review_text) -> Dict:
    errors = {}
    if not dish_id:
        errors['dish'] = 'Please select a dish to review'
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        errors['rating'] = f'Rating must be between {MIN_RATING} and {MAX_RATING}'
    if not isinstance(review_text, str) or not review_text.strip():
        errors['reviewText'] = 'Review text is required'
    return errors


class MyReviews:
    """
    Reviews of the logged in user joined to dish names
    """

    def __init__(self, api: ApiClient, state: AppState):
        self.api = api
        self.state = state
        self.reviews: List[Dict] = []
        self.dishes: Dict = {}

    def _get_session_user(self) -> Dict:
        session_user = self.state.get(SESSION_KEY)
        if not isinstance(session_user, dict) or not session_user.get('userId'):
            raise NotLoggedIn('Please log in to continue')
        return session_user

    def _join(self, review: Dict, session_user: Dict) -> Dict:
        dish_id = review.get('dish')
        if dish_id and dish_id not in self.dishes:
            self.dishes[dish_id] = self.api.get_or_none(f'/dish/getDishById/{dish_id}')
        return join_review(review, self.dishes, {session_user['userId']: session_user})

    def list(self) -> List[Dict]:
        session_user = self._get_session_user()
        reviews = self.api.get(f"/review/getReviewsByUserId/{session_user['userId']}") or []
        self.dishes = {dish['id']: dish for dish in self.api.get('/dish/getAllDishes') or []}
        self.reviews = [self._join(review, session_user) for review in reviews]
        return self.reviews

    def view_dish(self, review: Dict):
        if not review.get('dish'):
            return None
        return self.api.get_or_none(f"/dish/getDishById/{review['dish']}")

    def submit(self, dish_id: str, rating, review_text: str) -> Dict:
        errors = validate_review(dish_id, rating, review_text)
        if errors:
            raise FormValidationError(errors)
        session_user = self._get_session_user()
        review = self.api.post('/review/addReview', {
            'dish': dish_id,
            'rating': rating,
            'reviewText': review_text.strip()
        })
        review = self._join(review, session_user)
        self.reviews.append(review)
        return review

    def delete(self, review: Dict) -> List[Dict]:
        self._get_session_user()
        self.api.delete(f"/review/deleteReview/{review['id']}")
        self.reviews = [item for item in self.reviews if item.get('id') != review['id']]
        return self.reviews
