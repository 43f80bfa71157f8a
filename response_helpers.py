"""Builders for the standard API response envelopes."""
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def current_timestamp() -> str:
    """Current UTC time, ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_success_response(data: Any, message: str = "Success") -> Dict[str, Any]:
    return {
        "success": True,
        "data": data,
        "message": message,
        "timestamp": current_timestamp(),
    }


def create_error_response(
    message: str,
    status: int = 500,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build an error envelope.

    Args:
        message: Human-readable error message
        status: HTTP status code carried in the body
        details: Extra information; omitted from the body when empty

    Returns:
        Dict with ``success`` False and an ``error`` object
    """
    error: Dict[str, Any] = {"message": message, "status": status}
    if details:
        error["details"] = details
    error["timestamp"] = current_timestamp()
    return {"success": False, "error": error}


def create_validation_error_response(
    errors: Dict[str, List[str]],
    message: str = "Validation failed",
) -> Dict[str, Any]:
    """Error envelope for a rejected record, keyed by field path."""
    return {
        "success": False,
        "error": {
            "message": message,
            "status": 400,
            "details": {"validation": errors},
            "timestamp": current_timestamp(),
        },
    }


def create_paginated_response(
    items: List[Any],
    total: int,
    page: int,
    limit: int,
    message: str = "Success",
) -> Dict[str, Any]:
    """
    Success envelope for one page of a collection.

    Args:
        items: Records on the current page
        total: Number of records in the whole collection
        page: Current page number (1-indexed)
        limit: Page size

    Returns:
        Success envelope with a ``pagination`` block
    """
    total_pages = math.ceil(total / limit)
    response = create_success_response(items, message)
    response["pagination"] = {
        "total": total,
        "totalPages": total_pages,
        "currentPage": page,
        "itemsPerPage": limit,
        "hasNextPage": page < total_pages,
        "hasPreviousPage": page > 1,
    }
    return response
