# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

"""
Generic CRUD adapter behind the admin panel.

Maps the list/get/create/update/delete verbs of the admin UI onto table
queries for a fixed set of resources. Integrity rules (uniqueness, foreign
keys) are left to the database; violations surface as DataProviderError.
"""
from datetime import date, datetime
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from typify.models import User, UserPost, GeneratedContent, ScheduledPost, Subscription, UsageLog
from typify.logging_setup import log_event

RESOURCES = {
    "users": User,
    "user_posts": UserPost,
    "generated_content": GeneratedContent,
    "scheduled_posts": ScheduledPost,
    "subscriptions": Subscription,
    "usage_logs": UsageLog,
}

READ_ONLY_FIELDS = {"id", "created_at", "updated_at"}

class DataProviderError(Exception):
    pass

class UnknownResource(DataProviderError):
    pass

class RecordNotFound(DataProviderError):
    pass

class InvalidField(DataProviderError):
    pass

def _columns(model) -> dict[str, Any]:
    """Column objects keyed by their table name (so usage_logs exposes `metadata`)."""
    mapper = sa_inspect(model)
    return {attr.columns[0].name: attr for attr in mapper.column_attrs}

def _coerce(field: str, column_attr, value):
    # JSON bodies carry datetimes as ISO strings
    if not isinstance(value, str):
        return value
    try:
        python_type = column_attr.columns[0].type.python_type
    except NotImplementedError:
        return value
    try:
        if python_type is datetime:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        if python_type is date:
            return date.fromisoformat(value)
    except ValueError:
        raise InvalidField(f"'{field}' must be an ISO date")
    return value

def serialize(row) -> dict[str, Any]:
    out = {}
    for name, attr in _columns(type(row)).items():
        value = getattr(row, attr.key)
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        out[name] = value
    return out

class DataProvider:
    def __init__(self, db: Session):
        self.db = db

    def _model(self, resource: str):
        model = RESOURCES.get(resource)
        if model is None:
            raise UnknownResource(f"Unknown resource: {resource}")
        return model

    def _column(self, model, field: str):
        columns = _columns(model)
        if field not in columns:
            raise InvalidField(f"Unknown field '{field}' on {model.__tablename__}")
        return columns[field]

    def _attr(self, model, field: str):
        return getattr(model, self._column(model, field).key)

    def _query(self, model, filters: dict[str, Any] | None):
        query = self.db.query(model)
        for key, value in (filters or {}).items():
            if value is None or value == "":
                continue
            attr = self._attr(model, key)
            if isinstance(value, list):
                query = query.filter(attr.in_(value))
                continue
            query = query.filter(attr == value)
        return query

    def _run(self, call):
        """Runs a DB call, surfacing driver errors as DataProviderError."""
        try:
            return call()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DataProviderError(str(getattr(e, "orig", None) or e)) from e

    def _paginate(self, query, model, offset: int, limit: int, sort_field: str, sort_order: str):
        attr = self._attr(model, sort_field)
        total = self._run(query.count)
        query = query.order_by(attr.asc() if sort_order.upper() == "ASC" else attr.desc())
        rows = self._run(query.offset(max(offset, 0)).limit(limit).all)
        return rows, total

    def _values(self, model, data: dict[str, Any]) -> dict[str, Any]:
        values = {}
        for field, value in data.items():
            if field in READ_ONLY_FIELDS:
                continue
            column = self._column(model, field)
            values[column.key] = _coerce(field, column, value)
        return values

    def _commit(self):
        self._run(self.db.commit)

    def get_list(self, resource: str, page: int = 1, per_page: int = 25, sort_field: str = "id",
                 sort_order: str = "ASC", filters: dict[str, Any] | None = None, offset: int | None = None):
        """`offset` overrides the page-derived start for ranges that do not align with per_page."""
        model = self._model(resource)
        start = (max(page, 1) - 1) * per_page if offset is None else offset
        return self._paginate(self._query(model, filters), model, start, per_page, sort_field, sort_order)

    def get_one(self, resource: str, record_id: int):
        model = self._model(resource)
        row = self._run(lambda: self.db.get(model, record_id))
        if row is None:
            raise RecordNotFound(f"{resource} #{record_id} not found")
        return row

    def get_many(self, resource: str, ids: list[int]):
        model = self._model(resource)
        if not ids:
            return []
        return self._run(self.db.query(model).filter(model.id.in_(ids)).all)

    def get_many_reference(self, resource: str, target: str, record_id: Any, page: int = 1, per_page: int = 25,
                           sort_field: str = "id", sort_order: str = "ASC", filters: dict[str, Any] | None = None,
                           offset: int | None = None):
        model = self._model(resource)
        query = self._query(model, filters).filter(self._attr(model, target) == record_id)
        start = (max(page, 1) - 1) * per_page if offset is None else offset
        return self._paginate(query, model, start, per_page, sort_field, sort_order)

    def create(self, resource: str, data: dict[str, Any]):
        model = self._model(resource)
        row = model(**self._values(model, data))
        self.db.add(row)
        self._commit()
        self.db.refresh(row)
        log_event("admin_create", resource=resource, record_id=row.id)
        return row

    def update(self, resource: str, record_id: int, data: dict[str, Any]):
        model = self._model(resource)
        row = self.get_one(resource, record_id)
        for key, value in self._values(model, data).items():
            setattr(row, key, value)
        self._commit()
        self.db.refresh(row)
        log_event("admin_update", resource=resource, record_id=record_id)
        return row

    def update_many(self, resource: str, ids: list[int], data: dict[str, Any]) -> list[int]:
        model = self._model(resource)
        values = self._values(model, data)
        rows = self.get_many(resource, ids)
        for row in rows:
            for key, value in values.items():
                setattr(row, key, value)
        self._commit()
        log_event("admin_update_many", resource=resource, count=len(rows))
        return ids

    def delete(self, resource: str, record_id: int) -> dict[str, Any]:
        row = self.get_one(resource, record_id)
        self.db.delete(row)
        self._commit()
        log_event("admin_delete", resource=resource, record_id=record_id)
        return {"id": record_id}

    def delete_many(self, resource: str, ids: list[int]) -> list[int]:
        for row in self.get_many(resource, ids):
            self.db.delete(row)
        self._commit()
        log_event("admin_delete_many", resource=resource, count=len(ids))
        return ids

    def counts(self) -> dict[str, int]:
        return {name: self._run(self.db.query(model).count) for name, model in RESOURCES.items()}
