import json
from decimal import Decimal, InvalidOperation
from typing import Dict, List

from flask import Request

from foodlib.utils.exceptions import ValidationException


def replace_dict_key(item: Dict, orig_key: str, new_key: str):
    """
    Renames in place, a value already stored under new_key wins
    """
    if orig_key not in item:
        return
    value = item.pop(orig_key)
    item.setdefault(new_key, value)


def substitute_keys(dict_to_process: Dict, base_keys: Dict, opt_dict: Dict = None):
    """
    Renames keys by the mapping, keys mapped to None are removed
    """
    for key, new_key in {**base_keys, **(opt_dict or {})}.items():
        if new_key:
            replace_dict_key(dict_to_process, key, new_key)
        else:
            dict_to_process.pop(key, None)


def substitute_records(records_to_process: List, base_keys: Dict, opt_dict: Dict = None):
    for record in records_to_process:
        if isinstance(record, dict):
            substitute_keys(dict_to_process=record, base_keys=base_keys, opt_dict=opt_dict)


def parse_raw_body(flask_request: Request) -> Dict:
    raw_body = flask_request.get_data(as_text=True)
    if not raw_body:
        return {}
    try:
        body = json.loads(raw_body, parse_float=Decimal)
    except ValueError:
        raise ValidationException('Request body is not a valid JSON document')
    if not isinstance(body, dict):
        raise ValidationException('Request body must be a JSON object')
    return fix_values_from_ui(body)


def fix_values_from_ui(item: Dict) -> Dict:
    """
    Drops None values, also empty strings when the UI sends _values_from_ui_strategy=delete_empty
    """
    strategy = item.pop('_values_from_ui_strategy', None)
    return cleanup_dict(item, ['', None] if strategy == 'delete_empty' else [None])


def cleanup_dict(item: Dict, list_of_values: List) -> Dict:
    """
    Top level and one nested level only, lists are kept as they are
    """
    clean = {}
    for key, value in item.items():
        if isinstance(value, dict):
            nested = {k: v for k, v in value.items() if v not in list_of_values}
            if nested:
                clean[key] = nested
        elif isinstance(value, list) or value not in list_of_values:
            clean[key] = value
    return clean


def to_decimal(value, exp: str = '1.00'):
    """
    Money and counters come in as int, float or Decimal, bool is not a number here
    """
    if type(value) not in (int, float, Decimal):
        return None
    try:
        return Decimal(str(value)).quantize(Decimal(exp))
    except InvalidOperation:
        return None
