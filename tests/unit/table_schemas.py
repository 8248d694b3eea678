"""
DynamoDB table schema definitions for testing.

Builds create_table arguments from the collection schemas in
`src/utils/schema.py`, so the mocked tables always match the key structure
the stores expect.
"""

from typing import Any

from src.utils.schema import COLLECTIONS, CollectionSchema


def create_table_schema(collection: CollectionSchema) -> dict[str, Any]:
    """
    create_table kwargs for one collection.

    All key attributes are strings. Every GSI projects ALL attributes.
    """
    key_schema = [{"AttributeName": collection.partition_key, "KeyType": "HASH"}]
    if collection.sort_key:
        key_schema.append({"AttributeName": collection.sort_key, "KeyType": "RANGE"})

    attribute_names = list(collection.key_attributes)
    gsis = []
    for index in collection.indexes:
        index_key_schema = [{"AttributeName": index.partition_key, "KeyType": "HASH"}]
        if index.sort_key:
            index_key_schema.append({"AttributeName": index.sort_key, "KeyType": "RANGE"})
        for attribute in (index.partition_key, index.sort_key):
            if attribute and attribute not in attribute_names:
                attribute_names.append(attribute)
        gsis.append(
            {
                "IndexName": index.name,
                "KeySchema": index_key_schema,
                "Projection": {"ProjectionType": "ALL"},
            }
        )

    schema: dict[str, Any] = {
        "TableName": collection.default_table_name,
        "KeySchema": key_schema,
        "AttributeDefinitions": [{"AttributeName": name, "AttributeType": "S"} for name in attribute_names],
        "BillingMode": "PAY_PER_REQUEST",
    }
    if gsis:
        schema["GlobalSecondaryIndexes"] = gsis
    return schema


def get_all_table_schemas() -> list[dict[str, Any]]:
    """Get create_table kwargs for every collection."""
    return [create_table_schema(collection) for collection in COLLECTIONS.values()]


def create_all_tables(dynamodb_resource: Any) -> dict[str, Any]:
    """
    Create all DynamoDB tables for testing.

    Args:
        dynamodb_resource: Mocked boto3 DynamoDB resource

    Returns:
        Dictionary mapping collection names (e.g. "user_books") to table objects
    """
    return {
        name: dynamodb_resource.create_table(**create_table_schema(collection))
        for name, collection in COLLECTIONS.items()
    }


# Table names mapping for easy access
TABLE_NAMES = {name: collection.default_table_name for name, collection in COLLECTIONS.items()}
