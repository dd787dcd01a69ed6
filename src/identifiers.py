"""
Identifier utilities for Keyspaces tables.

A table is identified by its keyspace name and table name. The persisted
external identifier joins the two with a single separator.
"""

import re
from typing import Tuple

from errors import InvalidIdentifierError, InvalidNameError

TABLE_ID_SEPARATOR = "/"
MAX_NAME_LENGTH = 48
NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_]{0,47}$")


def validate_name_format(value: str, field_name: str) -> str:
    """Validate a keyspace or table name."""
    if not value:
        raise InvalidNameError(f"{field_name} cannot be empty")
    if len(value) > MAX_NAME_LENGTH:
        raise InvalidNameError(
            f"{field_name} cannot exceed {MAX_NAME_LENGTH} characters"
        )
    if not NAME_PATTERN.match(value):
        raise InvalidNameError(
            f"{field_name} must consist of alphanumerics and underscores, "
            f"starting with an alphanumeric character"
        )
    return value


def create_resource_id(keyspace_name: str, table_name: str) -> str:
    """Build the external identifier for a table."""
    return TABLE_ID_SEPARATOR.join([keyspace_name, table_name])


def parse_resource_id(resource_id: str) -> Tuple[str, str]:
    """
    Split an external identifier into (keyspace_name, table_name).

    Raises:
        InvalidIdentifierError: If the identifier is not exactly two
            non-empty parts joined by the separator.
    """
    parts = resource_id.split(TABLE_ID_SEPARATOR)

    if len(parts) == 2 and parts[0] and parts[1]:
        return parts[0], parts[1]

    raise InvalidIdentifierError(
        f"unexpected format for ID ({resource_id}), "
        f"expected KEYSPACE-NAME{TABLE_ID_SEPARATOR}TABLE-NAME"
    )
