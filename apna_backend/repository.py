"""Marketplace repository.

One interface (``MarketplaceRepository``) and one implementation backed by
Supabase. Rows are converted to and from the models in ``models`` here and
nowhere else.
"""

import re
from typing import Annotated, Protocol

import pydantic
from fastapi import Depends

from .database import (
    ADMIN_ACTIONS_TABLE,
    HIRE_REQUESTS_TABLE,
    JOBS_TABLE,
    SERVICES_TABLE,
    USERS_TABLE,
    Database,
)
from .errors import StorageError
from .models import AdminAction, CamelModel, HireRequest, Job, Service, UserProfile

TABLE_MODELS: dict[str, type[CamelModel]] = {
    USERS_TABLE: UserProfile,
    SERVICES_TABLE: Service,
    JOBS_TABLE: Job,
    HIRE_REQUESTS_TABLE: HireRequest,
    ADMIN_ACTIONS_TABLE: AdminAction,
}

# Columns selected from users; the password hash is never fetched.
USER_COLUMNS = ", ".join(UserProfile.model_fields)


# PostgREST logic-tree delimiters and LIKE wildcards
_SEARCH_STRIP = re.compile(r'[,()"\\%_*]')

DEFAULT_SEARCH_COLUMNS = ("title", "description")


def search_filter(columns: tuple[str, ...], term: str) -> str | None:
    """Build an ``or`` filter matching ``term`` in any of ``columns``.

    Characters that would change the meaning of the filter are dropped, not
    escaped. Returns None when nothing searchable is left.
    """
    cleaned = " ".join(_SEARCH_STRIP.sub(" ", term).split())
    if not cleaned:
        return None
    return ",".join(f"{column}.ilike.%{cleaned}%" for column in columns)


class MarketplaceRepository(Protocol):
    """Protocol for marketplace persistence backends."""

    async def get(self, table: str, record_id: int | str) -> CamelModel | None:
        """Get one record by id."""
        ...

    async def list_by_status(
        self, table: str, status: str, exclude_admins: bool = False
    ) -> list[CamelModel]:
        """List records in a status, newest first."""
        ...

    async def list_public(
        self,
        table: str,
        filters: dict,
        category_id: int | None = None,
        search: str | None = None,
        search_columns: tuple[str, ...] = DEFAULT_SEARCH_COLUMNS,
        order_by: str = "created_at",
        limit: int | None = None,
    ) -> list[CamelModel]:
        """List catalog-visible records, highest ``order_by`` first (NULLs last)."""
        ...

    async def list_by_owner(self, table: str, owner_column: str, owner_id: str) -> list[CamelModel]:
        """List records belonging to one user, newest first."""
        ...

    async def insert(self, table: str, fields: dict) -> CamelModel:
        """Insert a record and return it."""
        ...

    async def update(self, table: str, record_id: int | str, fields: dict) -> CamelModel | None:
        """Update a record. Returns None when no record has that id."""
        ...

    async def insert_admin_action(self, action: AdminAction) -> AdminAction:
        """Append an audit-log entry."""
        ...

    async def list_admin_actions(
        self,
        limit: int = 100,
        target_type: str | None = None,
        target_id: str | None = None,
    ) -> list[AdminAction]:
        """List audit-log entries, newest first."""
        ...


class SupabaseRepository:
    """Repository over the Supabase PostgREST API."""

    def __init__(self, db):
        self._db = db

    def _execute(self, operation: str, query):
        try:
            return query.execute()
        except Exception as e:
            raise StorageError(operation) from e

    def _select(self, table: str):
        columns = USER_COLUMNS if table == USERS_TABLE else "*"
        return self._db.table(table).select(columns)

    @staticmethod
    def _to_models(table: str, rows: list[dict] | None) -> list:
        model = TABLE_MODELS[table]
        try:
            return [model.from_row(row) for row in rows or []]
        except pydantic.ValidationError as e:
            raise StorageError(f"read {table} rows") from e

    async def get(self, table: str, record_id: int | str) -> CamelModel | None:
        query = self._select(table).eq("id", record_id).limit(1)
        result = self._execute(f"fetch {table} record", query)
        models = self._to_models(table, result.data)
        return models[0] if models else None

    async def list_by_status(
        self, table: str, status: str, exclude_admins: bool = False
    ) -> list[CamelModel]:
        query = self._select(table).eq("status", status)
        if exclude_admins:
            query = query.eq("is_admin", False)
        query = query.order("created_at", desc=True)
        result = self._execute(f"fetch {status} {table}", query)
        return self._to_models(table, result.data)

    async def list_public(
        self,
        table: str,
        filters: dict,
        category_id: int | None = None,
        search: str | None = None,
        search_columns: tuple[str, ...] = DEFAULT_SEARCH_COLUMNS,
        order_by: str = "created_at",
        limit: int | None = None,
    ) -> list[CamelModel]:
        query = self._select(table)
        for column, value in filters.items():
            query = query.eq(column, value)
        if category_id is not None:
            query = query.eq("category_id", category_id)
        if search:
            condition = search_filter(search_columns, search)
            if condition:
                query = query.or_(condition)
        query = query.order(order_by, desc=True, nullsfirst=False)
        if limit is not None:
            query = query.limit(limit)
        result = self._execute(f"fetch {table}", query)
        return self._to_models(table, result.data)

    async def list_by_owner(self, table: str, owner_column: str, owner_id: str) -> list[CamelModel]:
        query = (
            self._select(table)
            .eq(owner_column, owner_id)
            .order("created_at", desc=True)
        )
        result = self._execute(f"fetch {table} by {owner_column}", query)
        return self._to_models(table, result.data)

    async def insert(self, table: str, fields: dict) -> CamelModel:
        query = self._db.table(table).insert(fields)
        result = self._execute(f"create {table} record", query)
        if not result.data:
            raise StorageError(f"create {table} record")
        return self._to_models(table, result.data)[0]

    async def update(self, table: str, record_id: int | str, fields: dict) -> CamelModel | None:
        query = self._db.table(table).update(fields).eq("id", record_id)
        result = self._execute(f"update {table} record", query)
        models = self._to_models(table, result.data)
        return models[0] if models else None

    async def insert_admin_action(self, action: AdminAction) -> AdminAction:
        return await self.insert(ADMIN_ACTIONS_TABLE, action.to_row())

    async def list_admin_actions(
        self,
        limit: int = 100,
        target_type: str | None = None,
        target_id: str | None = None,
    ) -> list[AdminAction]:
        query = self._select(ADMIN_ACTIONS_TABLE)
        if target_type:
            query = query.eq("target_type", target_type)
        if target_id:
            query = query.eq("target_id", target_id)
        query = query.order("created_at", desc=True).limit(limit)
        result = self._execute("fetch admin actions", query)
        return self._to_models(ADMIN_ACTIONS_TABLE, result.data)


def get_repository(db: Database) -> MarketplaceRepository:
    """FastAPI dependency for the marketplace repository."""
    return SupabaseRepository(db)


Repository = Annotated[MarketplaceRepository, Depends(get_repository)]
