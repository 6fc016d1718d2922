"""Base repository with shared get-by-ID and pagination patterns.

Eliminates duplicated __init__, get_by_id, and list/count logic across
repositories. Subclasses set ``model_class`` and, optionally,
``sortable_columns``; the base provides the common implementations.
"""

from typing import Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import ResourceNotFoundError, ValidationError
from ..schemas.common import PageParams

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:      The SQLAlchemy model (e.g., Branch)
        sortable_columns: Column names accepted as ``sort`` in list queries
    """

    model_class: Type[ModelT]
    sortable_columns: frozenset = frozenset({"created_at"})

    def __init__(self, db: Session):
        self.db = db

    @property
    def resource_name(self) -> str:
        return self.model_class.__name__

    def _base_query(self) -> Query:
        return self.db.query(self.model_class)

    def get_by_id(self, entity_id: str) -> ModelT:
        """Get entity by primary key. Raises ResourceNotFoundError if missing."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise ResourceNotFoundError(self.resource_name, entity_id)
        return entity

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        return self._base_query().filter(self.model_class.id == entity_id).first()

    def paginate(self, params: PageParams, *criteria) -> Tuple[List[ModelT], int]:
        """One page of rows matching *criteria* plus the total match count."""
        if params.sort not in self.sortable_columns:
            raise ValidationError(
                f"Cannot sort by {params.sort!r}. Allowed: {', '.join(sorted(self.sortable_columns))}",
                field="sort",
            )
        query = self._base_query().filter(*criteria)
        total = query.count()
        column = getattr(self.model_class, params.sort)
        ordering = column.asc() if params.order == "asc" else column.desc()
        rows = query.order_by(ordering, self.model_class.id).offset(params.offset).limit(params.limit).all()
        return rows, total

    def add(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.commit()
