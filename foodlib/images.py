import base64
import binascii
import os
import re
from io import BytesIO
from typing import Tuple

from flask import Request
from PIL import Image, UnidentifiedImageError

from foodlib.constants.constants import ALLOWED_IMAGE_TYPES, MAX_IMAGE_SIZE, DEFAULT_MAX_IMG_WIDTH, \
    MAX_COVER_IMAGE_URI_LENGTH, MIN_IMG_WIDTH
from foodlib.constants.status_codes import http200
from foodlib.utils import app as utils_app, exceptions
from foodlib.utils.logger import logger

DATA_URI_PATTERN = re.compile(r'^data:(?P<mime>image/(?:jpeg|png));base64,(?P<payload>[A-Za-z0-9+/=\s]+)$')
URL_PATTERN = re.compile(r'^https?://\S+$')

PIL_FORMAT_MIME_TYPES = {
    'JPEG': 'image/jpeg',
    'PNG': 'image/png'
}

COVER_IMAGE_FIELD = 'coverImage'


def is_valid_cover_image(value) -> bool:
    """
    Cover image is either a link or an embedded jpeg/png data uri short enough to be stored with the dish
    """
    if not isinstance(value, str) or not value or len(value) > MAX_COVER_IMAGE_URI_LENGTH:
        return False
    if URL_PATTERN.match(value):
        return True
    match = DATA_URI_PATTERN.match(value)
    if not match:
        return False
    try:
        content = base64.b64decode(match.group('payload'), validate=False)
    except (binascii.Error, ValueError):
        return False
    return len(content) > 0


def to_data_uri(content: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"


def get_resize_width_height(image: Image, max_width: int) -> Tuple[int, int]:
    width, height = image.size
    if width <= max_width:
        return width, height
    divider = width / max_width
    return max_width, max(int(height / divider), 1)


def open_image(content: bytes) -> Image:
    try:
        image: Image = Image.open(BytesIO(content))
        image.load()
    except (UnidentifiedImageError, OSError) as error:
        raise exceptions.ValidationException(f'Cover image could not be read: {error}')
    if image.format not in PIL_FORMAT_MIME_TYPES:
        raise exceptions.ValidationException(f'Cover image must be JPEG or PNG, got {image.format}')
    return image


def save_image(image: Image, image_format: str, max_width: int) -> bytes:
    size = get_resize_width_height(image, max_width)
    if size != image.size:
        image = image.resize(size=size)
    if image_format == 'JPEG' and image.mode not in ('RGB', 'L'):
        image = image.convert('RGB')

    buf = BytesIO()
    if image_format == 'JPEG':
        image.save(buf, format='JPEG', optimize=True, quality=90)
    else:
        image.save(buf, format='PNG', optimize=True)
    return buf.getvalue()


def compress_image(content: bytes) -> Tuple[bytes, str]:
    """
    Downscales to MAX_IMG_WIDTH, then halves the width until the data uri fits into a dish record
    """
    image = open_image(content)
    image_format = image.format
    mime_type = PIL_FORMAT_MIME_TYPES[image_format]
    max_width = int(os.environ.get('MAX_IMG_WIDTH', DEFAULT_MAX_IMG_WIDTH))

    while True:
        compressed = save_image(image, image_format, max_width)
        if len(to_data_uri(compressed, mime_type)) <= MAX_COVER_IMAGE_URI_LENGTH:
            return compressed, mime_type
        if max_width <= MIN_IMG_WIDTH:
            raise exceptions.ValidationException('Cover image is too large to be stored, even when downscaled')
        logger.info(f'compress_image ::: {len(compressed)} bytes at {max_width=} do not fit, halving the width')
        max_width = max(max_width // 2, MIN_IMG_WIDTH)


def parse_multipart_request_data(request: Request) -> Tuple[bytes, str]:
    file_storage = request.files.get(COVER_IMAGE_FIELD)
    if file_storage is None:
        raise exceptions.MandatoryFieldsAreNotFilled(f'Multipart field {COVER_IMAGE_FIELD} is required')
    if file_storage.mimetype not in ALLOWED_IMAGE_TYPES:
        raise exceptions.ValidationException(f'Only JPEG and PNG images are allowed, got {file_storage.mimetype}')
    file_content = file_storage.read()
    if not file_content:
        raise exceptions.ValidationException('Cover image is empty')
    if len(file_content) > MAX_IMAGE_SIZE:
        raise exceptions.ValidationException('Cover image must be smaller than 5MB')
    return file_content, file_storage.filename


@utils_app.request_exception_handler
@utils_app.log_start_finish
def image_upload(request: Request):
    file_content, file_name = parse_multipart_request_data(request)
    content, mime_type = compress_image(file_content)
    logger.info(f'image_upload ::: {file_name=} compressed from {len(file_content)} to {len(content)} bytes')
    return utils_app.json_response(
        data={COVER_IMAGE_FIELD: to_data_uri(content, mime_type)},
        message='Cover image was uploaded successfully',
        status_code=http200
    )
