import pytest
from moto import mock_aws

from foodlib.constants.constants import ROLE_ADMIN, ROLE_USER
from foodlib.utils import db
from test.utils.fixtures import create_logged_in_user


@pytest.fixture(autouse=True)
def aws_environment(monkeypatch):
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'eu-central-1')
    monkeypatch.setenv('AWS_REGION', 'eu-central-1')
    monkeypatch.setenv('GEN_TABLE_NAME', 'food-ordering-test')
    monkeypatch.setenv('JWT_SECRET_KEY', 'test-secret-key-which-is-long-enough-for-hs256')
    monkeypatch.setenv('DB_MAX_RETRIES', '3')
    monkeypatch.delenv('ENDPOINT_URL', raising=False)
    monkeypatch.delenv('PASSWORD_RESET_ENABLED', raising=False)
    monkeypatch.delenv('API_BASE_URL', raising=False)


@pytest.fixture
def gen_table():
    with mock_aws():
        yield db.create_gen_table()


@pytest.fixture
def flask_client(gen_table):
    from app import app
    app.config.update(TESTING=True)
    with app.test_client() as client:
        yield client


@pytest.fixture
def admin(flask_client):
    return create_logged_in_user(flask_client, role=ROLE_ADMIN, email='admin@example.com', username='admin')


@pytest.fixture
def user(flask_client):
    return create_logged_in_user(flask_client, role=ROLE_USER, email='user@example.com', username='user')


@pytest.fixture
def other_user(flask_client):
    return create_logged_in_user(flask_client, role=ROLE_USER, email='other@example.com', username='other')
