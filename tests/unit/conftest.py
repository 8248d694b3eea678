"""
Test fixtures for resolver tests.

Provides mocked AWS resources, both store backends and common test data.
"""

import os
from typing import Any, Dict, Generator

import boto3
import pytest
from moto import mock_aws

from src.utils.auth import IdentityContext
from src.utils.dynamodb import DynamoDBStore, clear_all_overrides, reset_singleton
from src.utils.schema import COLLECTIONS
from src.utils.store import InMemoryStore, Store
from tests.unit.fixtures import FakeClock
from tests.unit.table_schemas import create_all_tables


@pytest.fixture(autouse=True)
def reset_store_overrides() -> Generator[None, None, None]:
    """Reset the store accessor between tests."""
    clear_all_overrides()
    reset_singleton()
    yield
    clear_all_overrides()
    reset_singleton()


@pytest.fixture
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set fake AWS credentials for moto and use default table names."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("DYNAMODB_ENDPOINT", raising=False)
    for collection in COLLECTIONS.values():
        monkeypatch.delenv(collection.table_name_env, raising=False)


@pytest.fixture
def dynamodb_tables(aws_credentials: None) -> Generator[Dict[str, Any], None, None]:
    """Create all mock DynamoDB tables, keyed by collection name."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        yield create_all_tables(dynamodb)


@pytest.fixture
def dynamodb_stores(dynamodb_tables: Dict[str, Any]) -> Dict[str, Store]:
    """DynamoDB-backed stores over the mocked tables."""
    return {name: DynamoDBStore(COLLECTIONS[name], table) for name, table in dynamodb_tables.items()}


@pytest.fixture
def memory_stores() -> Dict[str, Store]:
    """In-memory stores for every collection."""
    return {name: InMemoryStore(schema) for name, schema in COLLECTIONS.items()}


@pytest.fixture(params=["memory", "dynamodb"])
def backend_stores(request: pytest.FixtureRequest) -> Dict[str, Store]:
    """Every store backend in turn; mapper behavior must match on both."""
    fixture_name = "memory_stores" if request.param == "memory" else "dynamodb_stores"
    result: Dict[str, Store] = request.getfixturevalue(fixture_name)
    return result


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Freeze `utc_now` everywhere mappers read the time."""
    fake = FakeClock()
    monkeypatch.setattr("src.utils.ids.utc_now", fake)
    monkeypatch.setattr("src.handlers.review_operations.utc_now", fake)
    monkeypatch.setattr("src.handlers.book_cache_operations.utc_now", fake)
    return fake


@pytest.fixture
def sample_user_id() -> str:
    """Sample caller subject (Cognito sub)."""
    return "user-123-456"


@pytest.fixture
def another_user_id() -> str:
    """Another user's subject."""
    return "user-789-xyz"


@pytest.fixture
def identity(sample_user_id: str) -> IdentityContext:
    """Authenticated caller identity."""
    return IdentityContext(caller_id=sample_user_id, claims={"sub": sample_user_id})


@pytest.fixture
def anonymous() -> IdentityContext:
    """Identity of an event without a caller."""
    return IdentityContext()


@pytest.fixture
def lambda_context() -> Any:
    """Mock Lambda context."""

    class Context:
        function_name = "test-function"
        memory_limit_in_mb = 128
        invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-function"
        aws_request_id = "test-request-id"

    return Context()


@pytest.fixture(autouse=True)
def log_level() -> Generator[None, None, None]:
    """Keep LOG_LEVEL stable for tests that capture stdout."""
    original = os.environ.get("LOG_LEVEL")
    os.environ["LOG_LEVEL"] = "INFO"
    yield
    if original is None:
        os.environ.pop("LOG_LEVEL", None)
    else:
        os.environ["LOG_LEVEL"] = original
