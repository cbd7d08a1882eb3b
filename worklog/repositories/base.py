"""Base repository class with common CRUD operations."""

import logging
from abc import ABC
from typing import Generic, TypeVar, Type, Optional, List, Any, Dict
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import func

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType], ABC):
    """Base repository class providing common CRUD operations.

    Provides:
    - Standard CRUD operations (Create, Read, Update, Delete)
    - Soft delete support for models with AuditMixin
    - Query filtering
    - Structured logging for data operations

    Repositories only flush; committing is the calling service's job.
    """

    def __init__(self, db: Session, model: Type[ModelType], correlation_id: Optional[str] = None):
        """Initialize repository with database session and model type.

        Args:
            db: SQLAlchemy database session
            model: SQLAlchemy model class
            correlation_id: Optional request correlation ID for logging
        """
        self.db = db
        self.model = model
        self.correlation_id = correlation_id
        self.logger = logging.getLogger(self.__class__.__name__)

    def create(self, obj_in: Any, **kwargs: Any) -> ModelType:
        """Create a new record in the database.

        Args:
            obj_in: Pydantic model or dict with creation data
            **kwargs: Additional fields to set on the model

        Returns:
            Created model instance

        Raises:
            SQLAlchemyError: On database operation failure
        """
        try:
            if hasattr(obj_in, "model_dump"):
                obj_data = obj_in.model_dump(exclude_unset=True)
            else:
                obj_data = dict(obj_in)

            obj_data.update(kwargs)
            db_obj = self.model(**obj_data)

            self.db.add(db_obj)
            self.db.flush()
            self.db.refresh(db_obj)

            self._log_operation("create", model=self.model.__name__, id=getattr(db_obj, "id", None))
            return db_obj

        except SQLAlchemyError as e:
            self.logger.error(
                f"Failed to create {self.model.__name__}",
                extra={
                    "correlation_id": self.correlation_id,
                    "repository": self.__class__.__name__,
                    "error": str(e)
                }
            )
            raise

    def get_by_id(self, id: Any, include_deleted: bool = False) -> Optional[ModelType]:
        """Get a record by ID.

        Args:
            id: Record ID
            include_deleted: Whether to include soft-deleted records

        Returns:
            Model instance or None if not found
        """
        query = self.db.query(self.model).filter(self.model.id == id)

        if not include_deleted and hasattr(self.model, "is_deleted"):
            query = query.filter(self.model.is_deleted == False)  # noqa: E712

        result = query.first()
        self._log_operation("get_by_id", model=self.model.__name__, id=id, found=result is not None)
        return result

    def get_multi(
        self,
        include_deleted: bool = False,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[List[Any]] = None
    ) -> List[ModelType]:
        """Get records with filtering and ordering.

        Args:
            include_deleted: Whether to include soft-deleted records
            filters: Dictionary of field equality filters
            order_by: Column expressions to order by

        Returns:
            List of model instances
        """
        query = self.db.query(self.model)

        if not include_deleted and hasattr(self.model, "is_deleted"):
            query = query.filter(self.model.is_deleted == False)  # noqa: E712

        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field):
                    query = query.filter(getattr(self.model, field) == value)
                else:
                    self._log_operation("get_multi_filter_field_not_found", model=self.model.__name__, field=field)

        if order_by:
            query = query.order_by(*order_by)

        results = query.all()
        self._log_operation("get_multi", model=self.model.__name__, count=len(results), include_deleted=include_deleted)
        return results

    def update(self, db_obj: ModelType, fields: Dict[str, Any]) -> ModelType:
        """Apply field values to a loaded record.

        Args:
            db_obj: Loaded model instance
            fields: Attribute values to set

        Returns:
            Updated model instance

        Raises:
            SQLAlchemyError: On database operation failure
        """
        try:
            for field, value in fields.items():
                if hasattr(db_obj, field):
                    setattr(db_obj, field, value)

            self.db.flush()
            self.db.refresh(db_obj)

            self._log_operation("update", model=self.model.__name__, id=getattr(db_obj, "id", None), fields=list(fields.keys()))
            return db_obj

        except SQLAlchemyError as e:
            self.logger.error(
                f"Failed to update {self.model.__name__}",
                extra={
                    "correlation_id": self.correlation_id,
                    "repository": self.__class__.__name__,
                    "error": str(e)
                }
            )
            raise

    def delete(self, id: Any, soft_delete: bool = True) -> bool:
        """Delete a record by ID.

        Args:
            id: Record ID
            soft_delete: Whether to perform soft delete (if model supports it)

        Returns:
            True if deleted, False if not found

        Raises:
            SQLAlchemyError: On database operation failure
        """
        try:
            db_obj = self.get_by_id(id)
            if not db_obj:
                return False

            if soft_delete and hasattr(db_obj, "is_deleted"):
                db_obj.is_deleted = True
                if hasattr(db_obj, "deleted_at"):
                    db_obj.deleted_at = func.now()
            else:
                self.db.delete(db_obj)
            self.db.flush()

            self._log_operation("delete", model=self.model.__name__, id=id, soft=soft_delete)
            return True

        except SQLAlchemyError as e:
            self.logger.error(
                f"Failed to delete {self.model.__name__} with id {id}",
                extra={
                    "correlation_id": self.correlation_id,
                    "repository": self.__class__.__name__,
                    "error": str(e)
                }
            )
            raise

    def _log_operation(self, operation: str, **kwargs: Any) -> None:
        """Log repository operation with structured fields.

        Args:
            operation: Name of the operation being performed
            **kwargs: Additional fields to include in log
        """
        log_data = {
            "correlation_id": self.correlation_id,
            "repository": self.__class__.__name__,
            "operation": operation,
            **kwargs
        }
        self.logger.debug(f"Repository operation: {operation}", extra=log_data)
