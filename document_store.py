"""Validated persistence of records, one table per record kind."""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

import models
from auth import apply_password_hash
from database import Base, Database
from error_handler import DuplicateKeyError, NotFoundError
from validators import RecordValidator, record_validator

logger = logging.getLogger(__name__)

# Timestamp fields are set here and never taken from the caller
STORE_MANAGED_FIELDS = ("createdAt", "updatedAt", "creation_date", "last_update")


@dataclass(frozen=True)
class EntityKind:
    """How a record kind is stored."""

    name: str
    model: Type[Base]
    created_field: Optional[str] = "createdAt"
    updated_field: Optional[str] = "updatedAt"
    hashes_password: bool = False


ENTITY_KINDS: Dict[str, EntityKind] = {
    kind.name: kind
    for kind in (
        EntityKind("Pump", models.Pump),
        EntityKind("Zone", models.Zone),
        EntityKind("Schedule", models.Schedule),
        EntityKind("Notification", models.Notification),
        EntityKind("NotificationSubscriber", models.NotificationSubscriber),
        EntityKind("WaterUsage", models.WaterUsage),
        EntityKind("UserPreferences", models.UserPreferences),
        EntityKind("Session", models.Session),
        EntityKind("User", models.User, created_field="creation_date", updated_field=None),
        EntityKind("UserContact", models.UserContact, created_field="last_update", updated_field=None),
        # Addresses refresh last_update on every save
        EntityKind("UserAddress", models.UserAddress, created_field="last_update", updated_field="last_update"),
        # The hasher owns last_update for passwords
        EntityKind("UserPassword", models.UserPassword, created_field=None, updated_field=None, hashes_password=True),
    )
}


class DocumentStore:
    """
    Persistence collaborator for every record kind.

    Records are validated (and defaulted on insert) before they reach the
    database. Uniqueness is enforced by the database only; violations are
    reported as ``DuplicateKeyError``.
    """

    def __init__(self, database: Database, validator: Optional[RecordValidator] = None):
        self.database = database
        self.validator = validator or record_validator

    def _kind(self, kind: str) -> EntityKind:
        try:
            return ENTITY_KINDS[kind]
        except KeyError:
            raise ValueError(f"Unknown record kind: {kind}") from None

    def _to_document(self, entity: EntityKind, row) -> Dict[str, Any]:
        document = {}
        for attr in inspect(entity.model).column_attrs:
            value = getattr(row, attr.key)
            if value is not None:
                document[attr.key] = value
        return self.validator.hydrate(entity.name, document)

    def _query(self, db, entity: EntityKind, filters: Optional[Dict[str, Any]]):
        query = db.query(entity.model)
        if filters:
            fields = {attr.key for attr in inspect(entity.model).column_attrs}
            unknown = set(filters) - fields
            if unknown:
                raise ValueError(f"Unknown {entity.name} filter field(s): {', '.join(sorted(unknown))}")
            query = query.filter_by(**filters)
        return query

    def _duplicate_key(self, entity: EntityKind, document: Dict[str, Any], exc: IntegrityError):
        message = str(exc.orig)
        for attr in inspect(entity.model).column_attrs:
            column = attr.columns[0]
            if column.unique and column.name in message:
                return DuplicateKeyError(attr.key, document.get(attr.key), entity.name)
        return None

    def _commit(self, db, entity: EntityKind, document: Dict[str, Any]):
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            duplicate = self._duplicate_key(entity, document, exc)
            if duplicate is None:
                raise
            logger.info(f"Rejected duplicate {entity.name}.{duplicate.field}")
            raise duplicate from exc

    @staticmethod
    def _without_managed_fields(record: Any) -> Any:
        if not isinstance(record, dict):
            return record
        return {key: value for key, value in record.items() if key not in STORE_MANAGED_FIELDS}

    def insert(self, kind: str, record: Any) -> Dict[str, Any]:
        """
        Validate and persist a new record.

        Returns:
            The stored record, including its identifier and timestamps

        Raises:
            ValidationFailedError: If the record breaks its rule table
            DuplicateKeyError: If a unique field is already taken
        """
        entity = self._kind(kind)
        document = self.validator.validate(kind, self._without_managed_fields(record))
        if entity.hashes_password:
            document = apply_password_hash(document)

        now = datetime.utcnow()
        for field in (entity.created_field, entity.updated_field):
            if field:
                document[field] = now
        document["id"] = models.new_id()

        with self.database.session() as db:
            row = entity.model(**document)
            db.add(row)
            self._commit(db, entity, document)
            stored = self._to_document(entity, row)
        logger.debug(f"Inserted {kind} {stored['id']}")
        return stored

    def update(self, kind: str, record_id: str, partial: Any) -> Dict[str, Any]:
        """
        Apply a validated partial update.

        Defaults are not re-applied. A password is re-hashed only when its
        value differs from the stored hash.

        Raises:
            NotFoundError: If no record has this identifier
        """
        entity = self._kind(kind)
        with self.database.session() as db:
            row = db.get(entity.model, record_id)
            if row is None:
                raise NotFoundError(kind, record_id)

            current = self._to_document(entity, row)
            document = self.validator.validate_update(
                kind, current, self._without_managed_fields(partial)
            )
            if entity.hashes_password:
                document = apply_password_hash(document, previous=current)
            if entity.updated_field:
                document[entity.updated_field] = datetime.utcnow()

            for key, value in document.items():
                setattr(row, key, value)
            self._commit(db, entity, document)
            return self._to_document(entity, row)

    def find_one(self, kind: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        entity = self._kind(kind)
        with self.database.session() as db:
            row = self._query(db, entity, filters).first()
            return self._to_document(entity, row) if row is not None else None

    def find(
        self,
        kind: str,
        filters: Optional[Dict[str, Any]] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        entity = self._kind(kind)
        with self.database.session() as db:
            ordering = [entity.model.id]
            if entity.created_field:
                ordering.insert(0, getattr(entity.model, entity.created_field))
            query = self._query(db, entity, filters).order_by(*ordering).offset(skip)
            if limit is not None:
                query = query.limit(limit)
            return [self._to_document(entity, row) for row in query.all()]

    def count(self, kind: str, filters: Optional[Dict[str, Any]] = None) -> int:
        entity = self._kind(kind)
        with self.database.session() as db:
            return self._query(db, entity, filters).count()

    def delete(self, kind: str, filters: Dict[str, Any]) -> int:
        """Remove matching records outright. Returns how many were deleted."""
        entity = self._kind(kind)
        with self.database.session() as db:
            deleted = self._query(db, entity, filters).delete(synchronize_session=False)
            db.commit()
        logger.debug(f"Deleted {deleted} {kind} record(s)")
        return deleted

    def ping(self):
        self.database.ping()
