# RAMM MCP Server
# File: filters.py
# Version: v1

"""Structural validation of user-supplied filter predicates.

Only the shape is checked here: a sequence of records each carrying
``columnName``, ``operator`` and ``value``. Whether an operator exists or
a value fits the column is for the server to decide.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Dict, List

from .exceptions import InvalidFilterError
from .models import FilterPredicate

logger = logging.getLogger(__name__)

REQUIRED_FILTER_FIELDS = ("columnName", "operator", "value")

FILTER_SHAPE_MESSAGE = (
    "filters must be of the form: "
    "[{'columnName': '...', 'operator': '...', 'value': '...'}, ...]"
)


def _is_filter_sequence(filters: Any) -> bool:
    return isinstance(filters, Sequence) and not isinstance(
        filters, (str, bytes, bytearray)
    )


def _is_valid_predicate(item: Any) -> bool:
    if isinstance(item, FilterPredicate):
        return True
    if not isinstance(item, Mapping):
        return False
    return all(name in item for name in REQUIRED_FILTER_FIELDS)


def validate_filters(filters: Any) -> bool:
    """Return True if ``filters`` has the required shape.

    An empty sequence is valid and means "no filtering". The input is
    never modified.
    """
    if not _is_filter_sequence(filters):
        return False
    return all(_is_valid_predicate(item) for item in filters)


def check_filters(filters: Any) -> List[Dict[str, Any]]:
    """Validate ``filters`` and return them as wire dicts, in caller order.

    Raises:
        InvalidFilterError: if the structure is not a sequence of records
            with ``columnName``, ``operator`` and ``value``.
    """
    if not validate_filters(filters):
        logger.warning("Rejected filters %r: %s", filters, FILTER_SHAPE_MESSAGE)
        raise InvalidFilterError(
            f"Invalid filters. {FILTER_SHAPE_MESSAGE}",
            shape=FILTER_SHAPE_MESSAGE,
        )

    normalised: List[Dict[str, Any]] = []
    for item in filters:
        if isinstance(item, FilterPredicate):
            normalised.append(item.to_wire())
        else:
            normalised.append(dict(item))
    return normalised
