from decimal import Decimal, InvalidOperation
from io import BytesIO
from typing import Callable, Dict, List

from PIL import Image, UnidentifiedImageError

from foodlib.client.api import ApiClient
from foodlib.client.catalog import CatalogQuery, ADMIN_DISHES_PAGE_SIZE
from foodlib.client.exceptions import ApiError, FormValidationError
from foodlib.client.pagination import PagedListView
from foodlib.constants.constants import MAX_IMAGE_SIZE, MAX_COVER_IMAGE_URI_LENGTH, ROLE_ADMIN
from foodlib.images import PIL_FORMAT_MIME_TYPES, to_data_uri, is_valid_cover_image
from foodlib.utils.logger import logger

ADMIN_USERS_PAGE_SIZE = 5
DISH_FORM_FIELDS = ('dishName', 'description', 'cuisine', 'price', 'isAvailable', 'coverImage')


def read_cover_image(content: bytes) -> str:
    """
    JPEG or PNG as a data uri, larger images have to go through DishForm.upload_cover_image to be downscaled
    """
    if len(content) > MAX_IMAGE_SIZE:
        raise FormValidationError({'coverImage': 'Image must be smaller than 5MB'})
    try:
        image_format = Image.open(BytesIO(content)).format
    except (UnidentifiedImageError, OSError):
        image_format = None
    if image_format not in PIL_FORMAT_MIME_TYPES:
        raise FormValidationError({'coverImage': 'Only JPEG and PNG images are allowed'})
    data_uri = to_data_uri(content, PIL_FORMAT_MIME_TYPES[image_format])
    if len(data_uri) > MAX_COVER_IMAGE_URI_LENGTH:
        raise FormValidationError({'coverImage': 'Image is too large, upload it to have it downscaled'})
    return data_uri


def read_cover_image_file(path: str) -> str:
    with open(path, 'rb') as image_file:
        return read_cover_image(image_file.read())


class DishForm:
    """
    Add dish form, or edit form when a stored dish is given
    """

    def __init__(self, api: ApiClient, dish: Dict = None):
        self.api = api
        self.dish_id = dish.get('id') if dish else None
        self.values: Dict = {key: dish.get(key) for key in DISH_FORM_FIELDS} if dish else {'isAvailable': True}

    @property
    def is_edit(self) -> bool:
        return self.dish_id is not None

    def validate(self, values: Dict) -> Dict:
        errors = {}
        for key, label in (('dishName', 'Dish name'), ('description', 'Description'), ('cuisine', 'Cuisine')):
            if not isinstance(values.get(key), str) or not values[key].strip():
                errors[key] = f'{label} is required'

        price = values.get('price')
        if price is None or price == '':
            errors['price'] = 'Price is required'
        else:
            try:
                if isinstance(price, bool) or Decimal(str(price)) < 0:
                    errors['price'] = 'Price must be a non-negative number'
            except InvalidOperation:
                errors['price'] = 'Price must be a non-negative number'

        cover_image = values.get('coverImage')
        if not cover_image and not self.is_edit:
            errors['coverImage'] = 'Cover image is required'
        elif cover_image and not is_valid_cover_image(cover_image):
            errors['coverImage'] = 'Cover image must be a link or a JPEG/PNG small enough to be stored'
        return errors

    def submit(self, values: Dict) -> Dict:
        values = {**self.values, **{key: value for key, value in values.items() if key in DISH_FORM_FIELDS}}
        errors = self.validate(values)
        if errors:
            raise FormValidationError(errors)
        body = {
            'dishName': values['dishName'].strip(),
            'description': values['description'].strip(),
            'cuisine': values['cuisine'].strip(),
            'price': float(Decimal(str(values['price']))),
            'isAvailable': bool(values.get('isAvailable', True))
        }
        if values.get('coverImage'):
            body['coverImage'] = values['coverImage']

        if self.is_edit:
            dish = self.api.put(f'/dish/updateDish/{self.dish_id}', body)
        else:
            dish = self.api.post('/dish/addDish', body)
            self.dish_id = dish['id']
        self.values = {key: dish.get(key) for key in DISH_FORM_FIELDS}
        return dish

    def upload_cover_image(self, content: bytes, file_name: str, mime_type: str) -> str:
        """
        Lets the server downscale the image, the returned data uri goes into the form values
        """
        data = self.api.post('/dish/uploadCoverImage', files={'coverImage': (file_name, content, mime_type)})
        self.values['coverImage'] = data['coverImage']
        return data['coverImage']


class AdminDishes(CatalogQuery):
    def __init__(self, api: ApiClient, page_size: int = ADMIN_DISHES_PAGE_SIZE):
        CatalogQuery.__init__(self, api, cart=None, page_size=page_size)

    def delete(self, dish: Dict, confirm: Callable[[Dict], bool]) -> bool:
        """
        Deletes after the confirmation callback agreed, orders and reviews of the dish are not checked
        """
        if not confirm(dish):
            logger.info(f"delete ::: deletion of dish {dish.get('id')} was not confirmed")
            return False
        self.api.delete(f"/dish/deleteDish/{dish['id']}")
        self.set_items([item for item in self.items if item.get('id') != dish['id']])
        return True


class AdminUsers(PagedListView):
    def __init__(self, api: ApiClient, page_size: int = ADMIN_USERS_PAGE_SIZE):
        PagedListView.__init__(self, page_size)
        self.api = api

    @property
    def users(self) -> List[Dict]:
        return self.items

    def load(self) -> List[Dict]:
        self.set_items(self.api.get('/user/getAllUsers'))
        return self.items

    def matches(self, item: Dict, term: str) -> bool:
        return any(term in str(item.get(key) or '').lower() for key in ('username', 'email', 'role'))


class AdminDashboard:
    """
    Totals shown on the admin landing page, a section which failed to load stays at 0
    """

    STAT_SOURCES = {
        'totalUsers': '/user/getAllUsers',
        'totalDishes': '/dish/getAllDishes',
        'totalOrders': '/order/getAllOrders',
        'totalReviews': '/review/getAllReviews'
    }

    def __init__(self, api: ApiClient):
        self.api = api
        self.stats: Dict[str, int] = {stat: 0 for stat in self.STAT_SOURCES}
        self.users: List[Dict] = []

    def load(self) -> Dict[str, int]:
        for stat, path in self.STAT_SOURCES.items():
            try:
                records = self.api.get(path) or []
            except ApiError as error:
                logger.warning(f'load ::: {stat} is not available, {error.status_code=}')
                continue
            if stat == 'totalUsers':
                # admins are not counted as customers
                self.users = [user for user in records if str(user.get('role', '')).lower() != ROLE_ADMIN.lower()]
                records = self.users
            self.stats[stat] = len(records)
        return self.stats
