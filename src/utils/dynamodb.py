"""
Centralized DynamoDB access utilities.

Provides the DynamoDB-backed `Store`, singleton-pattern store accessors with
lazy initialization, and test override support.
"""

import os
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set as SetType

import boto3
from boto3.dynamodb.conditions import Attr, Key as KeyCondition
from botocore.exceptions import ClientError, ConnectTimeoutError, EndpointConnectionError, ReadTimeoutError

from .errors import AppError, ErrorCode
from .schema import COLLECTIONS, CollectionSchema
from .store import (
    Directive,
    Item,
    Key,
    QueryOptions,
    RemoveNestedKey,
    Set,
    SetIfAbsent,
    SetNestedKey,
    Store,
)

if TYPE_CHECKING:
    from mypy_boto3_dynamodb import DynamoDBServiceResource
    from mypy_boto3_dynamodb.service_resource import Table


# Error codes meaning the service could not serve the request right now
UNAVAILABLE_ERROR_CODES = {
    "ServiceUnavailable",
    "InternalServerError",
    "ThrottlingException",
    "ProvisionedThroughputExceededException",
    "RequestLimitExceeded",
}

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"

# Module-level cache for test overrides
_store_overrides: Dict[str, Optional[Store]] = {}


def get_required_env(name: str, default: Optional[str] = None) -> str:
    """Get a required environment variable.

    In Lambda/production, the env var must be set. For tests, a default can be
    provided to allow the code to run in mocked environments.

    Args:
        name: Environment variable name
        default: Optional default for test environments

    Returns:
        The environment variable value

    Raises:
        ValueError: If the env var is not set and no default is provided
    """
    value = os.getenv(name, default)
    if value is None:
        raise ValueError(f"Required environment variable '{name}' is not set")
    return value


def _get_dynamodb() -> "DynamoDBServiceResource":
    """Get DynamoDB resource with optional endpoint override for LocalStack."""
    return boto3.resource("dynamodb", endpoint_url=os.getenv("DYNAMODB_ENDPOINT"))


def to_dynamo(value: Any) -> Any:
    """Convert floats (at any depth) to Decimal, which boto3 requires for numbers."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(v) for v in value]
    return value


class _Expression:
    """Placeholder bookkeeping shared by one request's update and condition expressions."""

    def __init__(self) -> None:
        self.names: Dict[str, str] = {}
        self.values: Dict[str, Any] = {}

    def name(self, attribute: str) -> str:
        for placeholder, existing in self.names.items():
            if existing == attribute:
                return placeholder
        placeholder = f"#n{len(self.names)}"
        self.names[placeholder] = attribute
        return placeholder

    def value(self, value: Any) -> str:
        placeholder = f":v{len(self.values)}"
        self.values[placeholder] = to_dynamo(value)
        return placeholder

    def update_expression(self, directives: List[Directive]) -> str:
        set_actions: List[str] = []
        remove_actions: List[str] = []
        for directive in directives:
            if isinstance(directive, Set):
                set_actions.append(f"{self.name(directive.field)} = {self.value(directive.value)}")
            elif isinstance(directive, SetIfAbsent):
                field = self.name(directive.field)
                set_actions.append(f"{field} = if_not_exists({field}, {self.value(directive.default)})")
            elif isinstance(directive, SetNestedKey):
                path = f"{self.name(directive.map_field)}.{self.name(directive.nested_key)}"
                set_actions.append(f"{path} = {self.value(directive.value)}")
            elif isinstance(directive, RemoveNestedKey):
                remove_actions.append(f"{self.name(directive.map_field)}.{self.name(directive.nested_key)}")
            else:
                raise TypeError(f"Unknown update directive: {directive!r}")

        clauses = []
        if set_actions:
            clauses.append("SET " + ", ".join(set_actions))
        if remove_actions:
            clauses.append("REMOVE " + ", ".join(remove_actions))
        return " ".join(clauses)

    def all_exist(self, attributes: List[str]) -> str:
        return " AND ".join(f"attribute_exists({self.name(a)})" for a in attributes)

    def none_exist(self, attributes: List[str]) -> str:
        return " AND ".join(f"attribute_not_exists({self.name(a)})" for a in attributes)


class _ConditionNotMet(Exception):
    """The request's ConditionExpression evaluated to false."""


def _nested_map_fields(directives: List[Directive]) -> List[str]:
    """Map attributes addressed by nested-key directives, in first-use order."""
    fields: List[str] = []
    for directive in directives:
        if isinstance(directive, (SetNestedKey, RemoveNestedKey)) and directive.map_field not in fields:
            fields.append(directive.map_field)
    return fields


def _assume_maps_present(directives: List[Directive], map_fields: List[str]) -> List[Directive]:
    """Directives for an item where every map in `map_fields` already exists."""
    return [d for d in directives if not (isinstance(d, SetIfAbsent) and d.field in map_fields)]


def _assume_maps_absent(directives: List[Directive], map_fields: List[str]) -> List[Directive]:
    """
    Directives for an item where no map in `map_fields` exists yet.

    Each map's directives are folded into one top-level `Set` of the resulting
    map, placed where the map was first addressed.
    """
    folded: Dict[str, Optional[Dict[str, Any]]] = {field: None for field in map_fields}
    for directive in directives:
        if isinstance(directive, SetIfAbsent) and directive.field in folded:
            if folded[directive.field] is None:
                folded[directive.field] = dict(directive.default)
        elif isinstance(directive, SetNestedKey):
            current = folded[directive.map_field]
            if current is None:
                raise AppError(
                    ErrorCode.VALIDATION_ERROR,
                    f"Attribute '{directive.map_field}' is not a map",
                )
            current[directive.nested_key] = directive.value
        elif isinstance(directive, RemoveNestedKey):
            current = folded[directive.map_field]
            if current is not None:
                current.pop(directive.nested_key, None)

    result: List[Directive] = []
    emitted: SetType[str] = set()
    for directive in directives:
        field = getattr(directive, "map_field", None) or getattr(directive, "field", None)
        if field in folded:
            if field not in emitted:
                emitted.add(field)
                if folded[field] is not None:
                    result.append(Set(field, folded[field]))
            continue
        result.append(directive)
    return result


class DynamoDBStore(Store):
    """Store backed by one DynamoDB table."""

    def __init__(self, schema: CollectionSchema, table: "Table") -> None:
        super().__init__(schema)
        self.table = table

    def _call(self, operation: Any, **kwargs: Any) -> Dict[str, Any]:
        """Invoke a table operation, translating availability failures to UNAVAILABLE."""
        try:
            response: Dict[str, Any] = operation(**kwargs)
            return response
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code == CONDITIONAL_CHECK_FAILED:
                raise _ConditionNotMet() from e
            if code in UNAVAILABLE_ERROR_CODES:
                raise AppError(
                    ErrorCode.UNAVAILABLE,
                    f"Table for '{self.schema.name}' is unavailable",
                    {"awsErrorCode": code},
                ) from e
            raise
        except (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError) as e:
            raise AppError(ErrorCode.UNAVAILABLE, f"Table for '{self.schema.name}' is unreachable") from e

    def _not_found(self, key: Key) -> AppError:
        return AppError(
            ErrorCode.NOT_FOUND,
            f"No item in '{self.schema.name}' for key {key}",
            {"key": dict(key)},
        )

    def get(self, key: Key) -> Item:
        self._require_key(key)
        response = self._call(self.table.get_item, Key=key)
        if "Item" not in response:
            raise self._not_found(key)
        item: Item = response["Item"]
        return item

    def put(self, key: Key, attributes: Dict[str, Any], if_absent: bool = False) -> Item:
        self._require_key(key)
        item = {**attributes, **key}
        kwargs: Dict[str, Any] = {"Item": to_dynamo(item)}
        if if_absent:
            kwargs["ConditionExpression"] = "attribute_not_exists(#pk)"
            kwargs["ExpressionAttributeNames"] = {"#pk": self.schema.partition_key}
        try:
            self._call(self.table.put_item, **kwargs)
        except _ConditionNotMet:
            raise AppError(
                ErrorCode.CONDITION_FAILED,
                f"Item already exists in '{self.schema.name}' for key {key}",
            )
        return item

    def _update_item(
        self, key: Key, directives: List[Directive], exist: List[str], absent: List[str]
    ) -> Item:
        expression = _Expression()
        update_expression = expression.update_expression(directives)
        condition = expression.all_exist([self.schema.partition_key, *exist])
        if absent:
            condition = f"{condition} AND {expression.none_exist(absent)}"

        if not update_expression:
            # Nothing left to write; still confirm the item is there
            item = self.get(key)
            if any(a not in item for a in exist) or any(a in item for a in absent):
                raise _ConditionNotMet()
            return item

        kwargs: Dict[str, Any] = {
            "Key": key,
            "UpdateExpression": update_expression,
            "ConditionExpression": condition,
            "ExpressionAttributeNames": expression.names,
            "ReturnValues": "ALL_NEW",
        }
        if expression.values:
            kwargs["ExpressionAttributeValues"] = expression.values
        response = self._call(self.table.update_item, **kwargs)
        attributes: Item = response["Attributes"]
        return attributes

    def update(self, key: Key, directives: List[Directive]) -> Item:
        self._require_key(key)
        map_fields = _nested_map_fields(directives)

        if not map_fields:
            try:
                return self._update_item(key, directives, exist=[], absent=[])
            except _ConditionNotMet:
                raise self._not_found(key)

        # DynamoDB cannot initialize a map and write into it in one expression,
        # so each branch is conditioned on whether the map already exists.
        try:
            return self._update_item(key, _assume_maps_present(directives, map_fields), exist=map_fields, absent=[])
        except _ConditionNotMet:
            pass
        try:
            return self._update_item(key, _assume_maps_absent(directives, map_fields), exist=[], absent=map_fields)
        except _ConditionNotMet:
            self.get(key)
            raise AppError(
                ErrorCode.CONDITION_FAILED,
                f"Concurrent update to {', '.join(map_fields)} in '{self.schema.name}' for key {key}",
            )

    def delete(self, key: Key) -> Item:
        self._require_key(key)
        try:
            response = self._call(
                self.table.delete_item,
                Key=key,
                ConditionExpression="attribute_exists(#pk)",
                ExpressionAttributeNames={"#pk": self.schema.partition_key},
                ReturnValues="ALL_OLD",
            )
        except _ConditionNotMet:
            raise self._not_found(key)
        attributes: Item = response["Attributes"]
        return attributes

    def query(self, partition_value: Any, options: Optional[QueryOptions] = None) -> List[Item]:
        options = options or QueryOptions()
        index = self.schema.get_index(options.index_name)

        key_condition = KeyCondition(index.partition_key).eq(partition_value)
        if options.sort_value is not None and index.sort_key:
            key_condition = key_condition & KeyCondition(index.sort_key).eq(options.sort_value)

        query_kwargs: Dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": options.scan_forward,
        }
        if options.index_name:
            query_kwargs["IndexName"] = options.index_name
        if options.filter is not None:
            query_kwargs["FilterExpression"] = Attr(options.filter.field).not_exists()

        # A capped query reads a single page of `limit` evaluated items
        if options.limit is not None:
            response = self._call(self.table.query, Limit=options.limit, **query_kwargs)
            items: List[Item] = response.get("Items", [])
            return items

        items = []
        last_evaluated_key: Optional[Dict[str, Any]] = None
        while True:
            if last_evaluated_key is not None:
                query_kwargs["ExclusiveStartKey"] = last_evaluated_key
            response = self._call(self.table.query, **query_kwargs)
            items.extend(response.get("Items", []))
            last_evaluated_key = response.get("LastEvaluatedKey")
            if last_evaluated_key is None:
                break
        return items


class StoreAccessor:
    """Centralized access to collection stores with environment-based table naming."""

    _instance: Optional["StoreAccessor"] = None

    def __new__(cls) -> "StoreAccessor":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def get(self, collection: str) -> Store:
        """Get the store for a collection (e.g. "user_books")."""
        if override := _store_overrides.get(collection):
            return override
        schema = COLLECTIONS[collection]
        table_name = get_required_env(schema.table_name_env, schema.default_table_name)
        return DynamoDBStore(schema, _get_dynamodb().Table(table_name))


# Singleton instance for import
stores = StoreAccessor()


# Test utilities
def override_store(collection: str, store: Optional[Store]) -> None:
    """Override a collection's store for testing. Set to None to clear override."""
    _store_overrides[collection] = store


def clear_all_overrides() -> None:
    """Clear all store overrides (call in test teardown)."""
    _store_overrides.clear()


def reset_singleton() -> None:
    """Reset the singleton instance (for testing isolation)."""
    StoreAccessor._instance = None
