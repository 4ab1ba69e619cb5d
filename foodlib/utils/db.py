import functools
import os
import time
from random import uniform

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from foodlib.utils import exceptions
from foodlib.utils.boto_clients import aws_config_ddb
from foodlib.utils.logger import logger, log_exception

# Throttling codes are the only ones worth another attempt
RETRY_EXCEPTIONS = ('ProvisionedThroughputExceededException', 'ThrottlingException')
CONDITION_FAILED = 'ConditionalCheckFailedException'
ITEM_METHODS = ('put_item', 'get_item', 'update_item', 'delete_item')
MAX_BACKOFF_SECONDS = 5

DEFAULT_GEN_TABLE_NAME = 'food-ordering'


def exp_db_backoff(func):
    """
    Wraps a single item call of a Table with retries on throttling,
    the pause doubles every attempt starting from a random seed
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if func.__name__ not in ITEM_METHODS:
            raise RuntimeError(f"exp_db_backoff supports only {', '.join(ITEM_METHODS)}, got {func.__name__}")
        kwargs['ReturnConsumedCapacity'] = 'TOTAL'
        max_retries = int(os.environ.get('DB_MAX_RETRIES', 15))
        seed = uniform(0.1, 0.99)
        logger.debug(f'{func.__name__} ::: {describe_key(kwargs.get("Key") or kwargs.get("Item") or {})}')

        for attempt in range(max_retries):
            try:
                response = func(*args, **kwargs)
            except ClientError as e:
                if e.response['Error']['Code'] not in RETRY_EXCEPTIONS:
                    raise
                log_exception(e, msg=f'{func.__name__} throttled, attempt {attempt + 1} of {max_retries}')
                time.sleep(min(seed * 2 ** attempt, MAX_BACKOFF_SECONDS))
                continue
            logger.debug(f"{func.__name__} ::: consumed {response.get('ConsumedCapacity')}")
            return response

        raise exceptions.NumberOfRetriesExceeded(f"{func.__name__} gave up after {max_retries} throttled attempts")

    return wrapper


def get_gen_table_name() -> str:
    return os.environ.get('GEN_TABLE_NAME', DEFAULT_GEN_TABLE_NAME)


def get_dynamodb_resource():
    endpoint_url = os.environ.get('ENDPOINT_URL')
    if endpoint_url:
        return boto3.resource('dynamodb', endpoint_url=endpoint_url, config=aws_config_ddb)
    return boto3.resource('dynamodb', config=aws_config_ddb)


def get_table(table_name: str):
    table = get_dynamodb_resource().Table(table_name)
    for method_name in ITEM_METHODS:
        setattr(table, method_name, exp_db_backoff(getattr(table, method_name)))
    return table


def get_gen_table():
    return get_table(get_gen_table_name())


def create_gen_table():
    """
    Single table for every entity, partkey groups the record type, sortkey is the record id
    """
    table = get_dynamodb_resource().create_table(
        TableName=get_gen_table_name(),
        KeySchema=[
            {'AttributeName': 'partkey', 'KeyType': 'HASH'},
            {'AttributeName': 'sortkey', 'KeyType': 'RANGE'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 'partkey', 'AttributeType': 'S'},
            {'AttributeName': 'sortkey', 'AttributeType': 'S'}
        ],
        BillingMode='PAY_PER_REQUEST'
    )
    table.wait_until_exists()
    logger.info(f'create_gen_table ::: table {get_gen_table_name()} created')
    return table


def describe_key(key: dict) -> str:
    return f"record partkey={key.get('partkey')} sortkey={key.get('sortkey')}"


def is_condition_failed(error: ClientError) -> bool:
    return error.response['Error']['Code'] == CONDITION_FAILED


def put_db_record(item: dict, only_if_new: bool = False, table=get_gen_table):
    kwargs = {'Item': item}
    if only_if_new:
        kwargs['ConditionExpression'] = Attr('partkey').not_exists()
    try:
        table().put_item(**kwargs)
    except ClientError as e:
        if is_condition_failed(e):
            raise exceptions.DuplicateRecord(f'{describe_key(item)} already exists')
        raise


def update_db_record(key: dict, update_body: dict, allowed_attrs_to_update: list,
                     allowed_attrs_to_delete: list, table=get_gen_table):
    """
    SET and REMOVE go as two calls, both only when the record exists
    :return:
    responses of the SET and REMOVE calls, None for a call which was not needed
    """
    set_expr, expr_attr_values, remove_expr, expr_attr_names = generate_update_expression(
        update_body=update_body,
        allowed_attrs_to_update=allowed_attrs_to_update,
        allowed_attrs_to_delete=allowed_attrs_to_delete
    )
    common = {'Key': key, 'ReturnValues': 'UPDATED_NEW', 'ConditionExpression': Attr('partkey').exists()}

    responses = []
    try:
        for expression, values in ((set_expr, expr_attr_values), (remove_expr, None)):
            if not expression:
                responses.append(None)
                continue
            call = {
                **common,
                'UpdateExpression': expression,
                'ExpressionAttributeNames': {
                    placeholder: name for placeholder, name in expr_attr_names.items()
                    if placeholder in expression.replace(',', ' ').replace('=', ' ').split()
                }
            }
            if values:
                call['ExpressionAttributeValues'] = values
            responses.append(table().update_item(**call))
    except ClientError as e:
        if is_condition_failed(e):
            raise exceptions.RecordNotFound(f'{describe_key(key)} not found')
        raise

    return tuple(responses)


def generate_update_expression(update_body: dict, allowed_attrs_to_update: list, allowed_attrs_to_delete: list):
    """
    Whitelisted fields with a value are SET, empty ones ('', [], {}) are REMOVEd when deletion is allowed.
    Names always go through #placeholders, status and date are reserved words
    """
    expr_attr_values = {}
    expr_attr_names = {}
    set_parts = []
    remove_parts = []
    for field in allowed_attrs_to_update:
        value = update_body.get(field)
        if value is None:
            continue
        expr_attr_names[f'#{field}'] = field
        if field in allowed_attrs_to_delete and value in ('', [], {}):
            remove_parts.append(f'#{field}')
            continue
        expr_attr_values[f':{field}'] = value
        set_parts.append(f'#{field}=:{field}')

    set_expr = f"SET {', '.join(set_parts)}" if set_parts else None
    remove_expr = f"REMOVE {', '.join(remove_parts)}" if remove_parts else None
    return set_expr, expr_attr_values, remove_expr, expr_attr_names


def get_db_item(partkey, sortkey, table=get_gen_table):
    key = {'partkey': partkey, 'sortkey': sortkey}
    item = table().get_item(Key=key).get('Item')
    if item is None:
        logger.warning(f"get_db_item ::: {describe_key(key)} not found")
        raise exceptions.RecordNotFound(f'{describe_key(key)} not found')
    return item


def delete_db_record(key: dict, table=get_gen_table):
    try:
        table().delete_item(Key=key, ConditionExpression=Attr('partkey').exists())
    except ClientError as e:
        if is_condition_failed(e):
            raise exceptions.RecordNotFound(f'{describe_key(key)} not found')
        raise


def query_items_paginated(key_condition_expression, filter_expression=None, table=get_gen_table,
                          limit=None, start_key=None):
    """
    One query page
    :return:
    items, LastEvaluatedKey (None on the last page)
    """
    kwargs = {'KeyConditionExpression': key_condition_expression}
    if filter_expression is not None:
        kwargs['FilterExpression'] = filter_expression
    if limit:
        kwargs['Limit'] = int(limit)
    if start_key:
        kwargs['ExclusiveStartKey'] = start_key

    response = table().query(**kwargs)
    return response['Items'], response.get('LastEvaluatedKey')


def query_items_paged(key_condition_expression, filter_expression=None, table=get_gen_table):
    """
    Follows LastEvaluatedKey until the partition is exhausted, a query page is capped at 1MB
    """
    all_items = []
    start_key = None
    while True:
        items, start_key = query_items_paginated(
            key_condition_expression,
            filter_expression=filter_expression,
            table=table,
            start_key=start_key
        )
        all_items.extend(items)
        if start_key is None:
            return all_items
