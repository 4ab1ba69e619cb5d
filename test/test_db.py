import pytest
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from foodlib.utils import db
from foodlib.utils.exceptions import NumberOfRetriesExceeded, DuplicateRecord, RecordNotFound


def client_error(code: str) -> ClientError:
    return ClientError({'Error': {'Code': code, 'Message': code}}, 'PutItem')


@pytest.fixture
def sleeps(monkeypatch):
    calls = []
    monkeypatch.setattr(db.time, 'sleep', calls.append)
    return calls


def test_backoff_retries_throttling(sleeps):
    calls = []

    def put_item(**kwargs):
        calls.append(kwargs)
        if len(calls) < 3:
            raise client_error('ProvisionedThroughputExceededException')
        return {'ok': True}

    assert db.exp_db_backoff(put_item)(Item={'partkey': 'a'}) == {'ok': True}
    assert len(calls) == 3
    assert len(sleeps) == 2
    assert all(call['ReturnConsumedCapacity'] == 'TOTAL' for call in calls)
    assert all(pause <= 5 for pause in sleeps)


def test_backoff_gives_up(sleeps):
    def get_item(**kwargs):
        raise client_error('ThrottlingException')

    with pytest.raises(NumberOfRetriesExceeded):
        db.exp_db_backoff(get_item)(Key={})
    assert len(sleeps) == 3


def test_backoff_does_not_retry_other_errors(sleeps):
    calls = []

    def delete_item(**kwargs):
        calls.append(kwargs)
        raise client_error('ConditionalCheckFailedException')

    with pytest.raises(ClientError):
        db.exp_db_backoff(delete_item)(Key={})
    assert len(calls) == 1
    assert sleeps == []


def test_backoff_only_for_item_methods():
    def scan(**kwargs):
        return {}

    with pytest.raises(RuntimeError):
        db.exp_db_backoff(scan)()


def test_generate_update_expression():
    set_expr, values, remove_expr, names = db.generate_update_expression(
        update_body={'status': 'Accepted', 'date': '2024-01-01', 'comment': '', 'skipped': None},
        allowed_attrs_to_update=['status', 'date', 'comment', 'skipped'],
        allowed_attrs_to_delete=['comment']
    )
    assert set_expr == 'SET #status=:status, #date=:date'
    assert values == {':status': 'Accepted', ':date': '2024-01-01'}
    assert remove_expr == 'REMOVE #comment'
    assert names == {'#status': 'status', '#date': 'date', '#comment': 'comment'}


def test_put_db_record_only_if_new(gen_table):
    item = {'partkey': 'things', 'sortkey': '1', 'name': 'first'}
    db.put_db_record(item, only_if_new=True)
    with pytest.raises(DuplicateRecord):
        db.put_db_record({**item, 'name': 'second'}, only_if_new=True)
    assert db.get_db_item('things', '1')['name'] == 'first'

    db.put_db_record({**item, 'name': 'second'})
    assert db.get_db_item('things', '1')['name'] == 'second'


def test_update_db_record(gen_table):
    db.put_db_record({'partkey': 'things', 'sortkey': '1', 'status': 'old', 'note': 'remove me'})
    db.update_db_record(
        key={'partkey': 'things', 'sortkey': '1'},
        update_body={'status': 'new', 'note': ''},
        allowed_attrs_to_update=['status', 'note'],
        allowed_attrs_to_delete=['note']
    )
    item = db.get_db_item('things', '1')
    assert item['status'] == 'new'
    assert 'note' not in item


def test_update_missing_record(gen_table):
    with pytest.raises(RecordNotFound):
        db.update_db_record(
            key={'partkey': 'things', 'sortkey': 'missing'},
            update_body={'status': 'new'},
            allowed_attrs_to_update=['status'],
            allowed_attrs_to_delete=[]
        )
    with pytest.raises(RecordNotFound):
        db.get_db_item('things', 'missing')


def test_delete_db_record(gen_table):
    db.put_db_record({'partkey': 'things', 'sortkey': '1'})
    db.delete_db_record({'partkey': 'things', 'sortkey': '1'})
    with pytest.raises(RecordNotFound):
        db.delete_db_record({'partkey': 'things', 'sortkey': '1'})


def test_query_items_paged(gen_table, monkeypatch):
    for i in range(7):
        db.put_db_record({'partkey': 'things', 'sortkey': f'{i:02d}', 'even': i % 2 == 0})
    db.put_db_record({'partkey': 'other', 'sortkey': '01'})

    original_query = db.query_items_paginated

    def small_pages(*args, **kwargs):
        kwargs['limit'] = 2
        return original_query(*args, **kwargs)

    monkeypatch.setattr(db, 'query_items_paginated', small_pages)
    items = db.query_items_paged(Key('partkey').eq('things'))
    assert [item['sortkey'] for item in items] == ['00', '01', '02', '03', '04', '05', '06']
