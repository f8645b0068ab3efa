"""
Shared SQL helpers for the repositories

Author: TM3
Date: 2025-10-17
"""
from typing import Any, Dict, Iterable, List, Tuple

from psycopg2.extras import Json


def build_set_clause(
    fields: Dict[str, Any],
    allowed_columns: Iterable[str],
    json_columns: Iterable[str] = ()
) -> Tuple[str, List[Any]]:
    """
    Build "col = %s, ..." for an UPDATE from a partial dict.

    Only whitelisted columns are used (keys come from request bodies).
    JSON columns are wrapped with psycopg2 Json.

    Returns:
        (set_clause, params); set_clause is empty when nothing applies
    """
    allowed = set(allowed_columns)
    json_cols = set(json_columns)
    assignments = []
    params = []

    for column, value in fields.items():
        if column not in allowed:
            continue
        assignments.append(f"{column} = %s")
        params.append(Json(value) if column in json_cols and value is not None else value)

    return ", ".join(assignments), params


def build_insert(
    fields: Dict[str, Any],
    allowed_columns: Iterable[str],
    json_columns: Iterable[str] = ()
) -> Tuple[str, str, List[Any]]:
    """
    Build the column list and placeholders for an INSERT.

    Returns:
        (columns, placeholders, params)
    """
    allowed = set(allowed_columns)
    json_cols = set(json_columns)
    columns = []
    params = []

    for column, value in fields.items():
        if column not in allowed:
            continue
        columns.append(column)
        params.append(Json(value) if column in json_cols and value is not None else value)

    return ", ".join(columns), ", ".join(["%s"] * len(columns)), params
