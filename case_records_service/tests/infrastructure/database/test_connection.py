import mongomock
import pytest
from unittest.mock import MagicMock, patch

from case_records_service.app.config import settings
from case_records_service.infrastructure.database import connection


@pytest.fixture(autouse=True)
def reset_connection_globals():
    connection.client = None
    connection.db = None
    yield
    connection.client = None
    connection.db = None


@patch('case_records_service.infrastructure.database.connection.MongoClient')
def test_connect_to_mongo_sets_globals(MockMongoClient):
    mock_client = MagicMock()
    MockMongoClient.return_value = mock_client

    connection.connect_to_mongo()

    MockMongoClient.assert_called_once_with(settings.MONGO_DETAILS)
    mock_client.admin.command.assert_called_once_with('ping')
    assert connection.client is mock_client
    assert connection.db is mock_client[settings.DB_NAME]


@patch('case_records_service.infrastructure.database.connection.MongoClient')
def test_connect_to_mongo_failure_raises_connection_error(MockMongoClient):
    MockMongoClient.return_value.admin.command.side_effect = Exception("no server")

    with pytest.raises(ConnectionError):
        connection.connect_to_mongo()

    assert connection.client is None
    assert connection.db is None


@patch('case_records_service.infrastructure.database.connection.MongoClient', mongomock.MongoClient)
def test_get_records_collection_connects_lazily():
    collection = connection.get_records_collection()
    assert collection.name == settings.RECORDS_COLLECTION
    assert connection.db is not None


def test_close_mongo_connection():
    mock_client = MagicMock()
    connection.client = mock_client
    connection.db = MagicMock()

    connection.close_mongo_connection()

    mock_client.close.assert_called_once()
    assert connection.client is None
    assert connection.db is None
