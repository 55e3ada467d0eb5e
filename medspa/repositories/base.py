"""
Base CRUD Repository Pattern
Generic repository with common database operations and row-level scoping
"""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, false, or_
from sqlalchemy.sql import Select
from pydantic import BaseModel
import structlog

from medspa.core.database import Base
from medspa.core.exceptions import ForbiddenScope
from medspa.core.scope import OwnerKind, ScopeFilter
from medspa.models.client import Client

logger = structlog.get_logger()

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Base CRUD repository with generic database operations

    Every read and write accepts an optional ``ScopeFilter``. When given, the
    query only sees rows the principal owns, and writes cannot move a row
    outside the principal's ownership.
    """

    def __init__(self, model: Type[ModelType]):
        """
        Initialize CRUD repository

        Args:
            model: SQLAlchemy model class
        """
        self.model = model

    # ------------------------------------------------------------------
    # Scoping
    # ------------------------------------------------------------------

    @staticmethod
    def _owned_client_ids(principal_id: int) -> Select:
        return select(Client.id).where(Client.user_id == principal_id, Client.is_deleted == False)

    def apply_scope(self, query: Select, scope: Optional[ScopeFilter]) -> Select:
        """
        Narrow a query to the rows a scope filter admits

        Models without the relevant owner column admit nothing.
        """
        if scope is None:
            return query

        if scope.owner == OwnerKind.PROVIDER:
            if hasattr(self.model, "provider_id"):
                return query.where(self.model.provider_id == scope.principal_id)
            return query.where(false())

        if scope.owner == OwnerKind.CLIENT:
            if self.model is Client:
                return query.where(Client.user_id == scope.principal_id)
            if hasattr(self.model, "client_id"):
                return query.where(self.model.client_id.in_(self._owned_client_ids(scope.principal_id)))
            return query.where(false())

        return query.where(false())

    async def _owner_value(self, db: AsyncSession, scope: ScopeFilter) -> tuple[str, int]:
        """Owner column and value a scoped write must carry"""
        if scope.owner == OwnerKind.PROVIDER and hasattr(self.model, "provider_id"):
            return "provider_id", scope.principal_id

        if scope.owner == OwnerKind.CLIENT and hasattr(self.model, "client_id"):
            result = await db.execute(self._owned_client_ids(scope.principal_id).limit(1))
            client_id = result.scalar_one_or_none()
            if client_id is None:
                raise ForbiddenScope("No client profile is linked to this account")
            return "client_id", client_id

        raise ForbiddenScope(detail=f"{self.model.__name__} has no owner column for {scope.owner.value}")

    async def _enforce_owner(
        self,
        db: AsyncSession,
        data: Dict[str, Any],
        scope: Optional[ScopeFilter],
        *,
        fill_missing: bool,
    ) -> Dict[str, Any]:
        if scope is None:
            return data

        field, value = await self._owner_value(db, scope)
        requested = data.get(field)
        if requested is not None and requested != value:
            logger.warning(
                "Scoped write names another owner",
                model=self.model.__name__,
                field=field,
                requested=requested,
                scope=scope.describe(),
            )
            raise ForbiddenScope()
        if fill_missing or field in data:
            data[field] = value
        return data

    def _base_query(self, include_deleted: bool = False) -> Select:
        query = select(self.model)
        if hasattr(self.model, 'is_deleted') and not include_deleted:
            query = query.where(self.model.is_deleted == False)
        return query

    def _apply_filters(self, query: Select, filters: Optional[Dict[str, Any]]) -> Select:
        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field):
                    if isinstance(value, list):
                        query = query.where(getattr(self.model, field).in_(value))
                    elif isinstance(value, dict) and 'like' in value:
                        query = query.where(getattr(self.model, field).ilike(f"%{value['like']}%"))
                    else:
                        query = query.where(getattr(self.model, field) == value)
        return query

    def _apply_search(self, query: Select, text: Optional[str], search_fields: Optional[List[str]]) -> Select:
        if not text or not search_fields:
            return query
        conditions = [
            getattr(self.model, field).ilike(f"%{text}%")
            for field in search_fields
            if hasattr(self.model, field)
        ]
        if conditions:
            query = query.where(or_(*conditions))
        return query

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(
        self,
        db: AsyncSession,
        id: int,
        *,
        scope: Optional[ScopeFilter] = None,
        include_deleted: bool = False
    ) -> Optional[ModelType]:
        """
        Get a single record by ID

        Args:
            db: Database session
            id: Record ID
            scope: Row-level scope; out-of-scope records read as missing
            include_deleted: Include soft-deleted records

        Returns:
            Model instance or None
        """
        try:
            query = self._base_query(include_deleted).where(self.model.id == id)
            query = self.apply_scope(query, scope)

            result = await db.execute(query)
            record = result.scalar_one_or_none()

            if record:
                logger.debug("Record retrieved", model=self.model.__name__, id=id)
            else:
                logger.debug("Record not found", model=self.model.__name__, id=id)

            return record

        except Exception as e:
            logger.error("Error retrieving record", model=self.model.__name__, id=id, error=str(e))
            raise

    async def get_multi(
        self,
        db: AsyncSession,
        *,
        scope: Optional[ScopeFilter] = None,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        include_deleted: bool = False
    ) -> List[ModelType]:
        """
        Get multiple records with pagination and filtering

        Args:
            db: Database session
            scope: Row-level scope
            skip: Number of records to skip
            limit: Maximum number of records to return
            filters: Dictionary of field filters
            order_by: Field to order by, ``-`` prefix for descending
            include_deleted: Include soft-deleted records

        Returns:
            List of model instances
        """
        try:
            query = self._apply_filters(self._base_query(include_deleted), filters)
            query = self.apply_scope(query, scope)

            if order_by:
                field = order_by.lstrip('-')
                if hasattr(self.model, field):
                    column = getattr(self.model, field)
                    query = query.order_by(column.desc() if order_by.startswith('-') else column)
            else:
                query = query.order_by(self.model.id)

            query = query.offset(skip).limit(limit)

            result = await db.execute(query)
            records = list(result.scalars().all())

            logger.debug(
                "Multiple records retrieved",
                model=self.model.__name__,
                count=len(records),
                skip=skip,
                limit=limit,
                scoped=scope is not None,
            )

            return records

        except Exception as e:
            logger.error("Error retrieving multiple records", model=self.model.__name__, error=str(e))
            raise

    async def count(
        self,
        db: AsyncSession,
        *,
        scope: Optional[ScopeFilter] = None,
        filters: Optional[Dict[str, Any]] = None,
        search: Optional[str] = None,
        search_fields: Optional[List[str]] = None,
        include_deleted: bool = False
    ) -> int:
        """Count records visible under the scope, narrowed by an optional text search"""
        try:
            query = self._apply_filters(self._base_query(include_deleted), filters)
            query = self._apply_search(query, search, search_fields)
            query = self.apply_scope(query, scope)
            result = await db.execute(select(func.count()).select_from(query.subquery()))
            count = result.scalar() or 0

            logger.debug("Record count", model=self.model.__name__, count=count)
            return count

        except Exception as e:
            logger.error("Error counting records", model=self.model.__name__, error=str(e))
            raise

    async def search(
        self,
        db: AsyncSession,
        *,
        query: str,
        search_fields: List[str],
        scope: Optional[ScopeFilter] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[ModelType]:
        """Case-insensitive text search across several columns"""
        try:
            db_query = self._apply_search(self._base_query(), query, search_fields)
            db_query = self.apply_scope(db_query, scope).order_by(self.model.id).offset(skip).limit(limit)

            result = await db.execute(db_query)
            records = list(result.scalars().all())

            logger.debug("Search completed", model=self.model.__name__, query=query, count=len(records))
            return records

        except Exception as e:
            logger.error("Error searching records", model=self.model.__name__, query=query, error=str(e))
            raise

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: Union[CreateSchemaType, Dict[str, Any]],
        scope: Optional[ScopeFilter] = None,
        commit: bool = True
    ) -> ModelType:
        """
        Create a new record

        Under a scope the owner field is forced to the principal; naming a
        different owner raises ``ForbiddenScope``.

        Args:
            db: Database session
            obj_in: Pydantic model or dict with creation data
            scope: Row-level scope
            commit: Whether to commit the transaction

        Returns:
            Created model instance
        """
        obj_in_data = dict(obj_in) if isinstance(obj_in, dict) else obj_in.model_dump()
        obj_in_data = await self._enforce_owner(db, obj_in_data, scope, fill_missing=True)

        try:
            db_obj = self.model(**obj_in_data)
            db.add(db_obj)

            if commit:
                await db.commit()
                await db.refresh(db_obj)
            else:
                await db.flush()

            logger.info("Record created", model=self.model.__name__, id=db_obj.id)
            return db_obj

        except Exception as e:
            if commit:
                await db.rollback()
            logger.error("Error creating record", model=self.model.__name__, error=str(e))
            raise

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]],
        scope: Optional[ScopeFilter] = None,
        commit: bool = True
    ) -> ModelType:
        """
        Update an existing record

        ``db_obj`` must have been loaded under the same scope; the scope is
        applied here only to stop the update from reassigning ownership.
        """
        if isinstance(obj_in, dict):
            update_data = dict(obj_in)
        else:
            update_data = obj_in.model_dump(exclude_unset=True)
        update_data = await self._enforce_owner(db, update_data, scope, fill_missing=False)

        try:
            for field, value in update_data.items():
                if hasattr(db_obj, field):
                    setattr(db_obj, field, value)

            if commit:
                await db.commit()
                await db.refresh(db_obj)
            else:
                await db.flush()

            logger.info("Record updated", model=self.model.__name__, id=db_obj.id)
            return db_obj

        except Exception as e:
            if commit:
                await db.rollback()
            logger.error("Error updating record", model=self.model.__name__, id=db_obj.id, error=str(e))
            raise

    async def delete(
        self,
        db: AsyncSession,
        *,
        id: int,
        scope: Optional[ScopeFilter] = None,
        soft_delete: bool = True,
        commit: bool = True
    ) -> Optional[ModelType]:
        """
        Delete a record (soft or hard delete)

        Returns:
            Deleted model instance, or None when missing or out of scope
        """
        db_obj = await self.get(db, id=id, scope=scope)
        if not db_obj:
            logger.warning("Record not found for deletion", model=self.model.__name__, id=id)
            return None

        try:
            soft = soft_delete and hasattr(db_obj, 'is_deleted')
            if soft:
                db_obj.is_deleted = True
                db_obj.deleted_at = func.now()
            else:
                await db.delete(db_obj)

            if commit:
                await db.commit()
                if soft:
                    await db.refresh(db_obj)
            else:
                await db.flush()

            logger.info("Record deleted", model=self.model.__name__, id=id, soft_delete=soft)
            return db_obj

        except Exception as e:
            if commit:
                await db.rollback()
            logger.error("Error deleting record", model=self.model.__name__, id=id, error=str(e))
            raise
