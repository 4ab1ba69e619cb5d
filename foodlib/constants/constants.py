import re

ROLE_ADMIN = 'Admin'
ROLE_USER = 'User'
ROLES = (ROLE_ADMIN, ROLE_USER)

# Ordered tracker stages, an order only moves forward through them
ORDER_STATUS_PENDING = 'Pending'
ORDER_STATUSES = ('Pending', 'Accepted', 'Preparing', 'OutForDelivery', 'Delivered')

ALL_CUISINE = 'All Cuisine'
CUISINES = ('Indian', 'American', 'Mediterranean', 'Japanese', 'Italian', 'Chinese')

ALLOWED_IMAGE_TYPES = ('image/jpeg', 'image/png')
MAX_IMAGE_SIZE = 5 * 1024 * 1024
# embedded cover images live inside the dish item, DynamoDB caps an item at 400KB
MAX_COVER_IMAGE_URI_LENGTH = 300 * 1024
MIN_IMG_WIDTH = 32
DEFAULT_MAX_IMG_WIDTH = 1024

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
PHONE_PATTERN = re.compile(r'^[0-9]{10}$')
MIN_PASSWORD_LENGTH = 8
MIN_RESET_PASSWORD_LENGTH = 6

MIN_RATING = 1
MAX_RATING = 5

UNKNOWN_DISH = 'Unknown Dish'
UNKNOWN = 'Unknown'
