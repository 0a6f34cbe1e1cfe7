"""
Firestore query helpers.
"""

from google.cloud.firestore_v1.base_query import FieldFilter


def where_filter(query, field_path: str, op_string: str, value):
    """
    Apply a where clause using the keyword FieldFilter API.

    Usage:
        query = where_filter(collection, "category", "in", ["fuel", "water"])
        query = where_filter(query, "created_at", ">=", since)
    """
    return query.where(filter=FieldFilter(field_path, op_string, value))
