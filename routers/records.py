"""CRUD endpoints for every record kind."""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query, status

from dependencies import get_store
from document_store import DocumentStore
from error_handler import NotFoundError
from response_helpers import create_paginated_response, create_success_response

logger = logging.getLogger(__name__)

# URL segment -> record kind
RESOURCES = {
    "pumps": "Pump",
    "zones": "Zone",
    "schedules": "Schedule",
    "notifications": "Notification",
    "notification-subscribers": "NotificationSubscriber",
    "water-usage": "WaterUsage",
    "user-preferences": "UserPreferences",
    "sessions": "Session",
    "users": "User",
    "user-contacts": "UserContact",
    "user-addresses": "UserAddress",
    "user-passwords": "UserPassword",
}

# Fields that are stored but never sent back
HIDDEN_FIELDS = {
    "UserPassword": ("password",),
}


def _public(kind: str, record: Dict[str, Any]) -> Dict[str, Any]:
    hidden = HIDDEN_FIELDS.get(kind, ())
    return {key: value for key, value in record.items() if key not in hidden}


def build_record_router(resource: str, kind: str) -> APIRouter:
    """Create list/get/create/update/delete routes for one record kind."""
    router = APIRouter(prefix=f"/{resource}", tags=[resource])

    @router.get("")
    def list_records(
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        store: DocumentStore = Depends(get_store),
    ):
        total = store.count(kind)
        items = store.find(kind, skip=(page - 1) * limit, limit=limit)
        return create_paginated_response([_public(kind, item) for item in items], total, page, limit)

    @router.get("/{record_id}")
    def get_record(record_id: str, store: DocumentStore = Depends(get_store)):
        record = store.find_one(kind, {"id": record_id})
        if record is None:
            raise NotFoundError(kind, record_id)
        return create_success_response(_public(kind, record))

    @router.post("", status_code=status.HTTP_201_CREATED)
    def create_record(
        record: Dict[str, Any] = Body(...),
        store: DocumentStore = Depends(get_store),
    ):
        created = store.insert(kind, record)
        logger.info(f"Created {kind} {created['id']}")
        return create_success_response(_public(kind, created), f"{kind} created")

    @router.patch("/{record_id}")
    def update_record(
        record_id: str,
        partial: Dict[str, Any] = Body(...),
        store: DocumentStore = Depends(get_store),
    ):
        updated = store.update(kind, record_id, partial)
        logger.info(f"Updated {kind} {record_id}")
        return create_success_response(_public(kind, updated), f"{kind} updated")

    @router.delete("/{record_id}")
    def delete_record(record_id: str, store: DocumentStore = Depends(get_store)):
        if not store.delete(kind, {"id": record_id}):
            raise NotFoundError(kind, record_id)
        logger.info(f"Deleted {kind} {record_id}")
        return create_success_response({"id": record_id}, f"{kind} deleted")

    return router


routers = [build_record_router(resource, kind) for resource, kind in RESOURCES.items()]
