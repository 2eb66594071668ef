from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, DatabaseError
from app.database.models import DocumentRecord
from app.schemas.entities import DocumentModel
from app.utils.coercion import coerce_key, key_sort_value
from app.utils.logging import get_logger

ModelType = TypeVar("ModelType", bound=DocumentModel)

LOGGER = get_logger(__name__)


class DocumentRepository(Generic[ModelType]):
    """Base repository over one document collection.

    Documents are decoded into the collection's typed model on the way out
    and encoded back to their stored field names on the way in. Collections
    are small reporting datasets, so filtering happens on decoded models
    rather than on the raw JSON, which keeps every predicate free of the
    source's mixed representations.
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session
            model: The document model this repository decodes into
        """
        self.session = session
        self.model = model
        self.collection = model.collection
        self.logger = LOGGER

    def _decode(self, record: DocumentRecord) -> ModelType:
        try:
            return self.model.from_document(record.data)
        except SchemaValidationError as e:
            self.logger.error(
                f"Undecodable {self.collection} document {record.key}",
                extra={"collection": self.collection, "key": record.key},
            )
            raise DatabaseError(
                f"Stored {self.collection} document {record.key} is malformed", original_error=e
            )

    async def _get_record(self, key: Any) -> Optional[DocumentRecord]:
        normalized = coerce_key(key)
        if normalized is None:
            return None
        query = select(DocumentRecord).where(
            DocumentRecord.collection == self.collection,
            DocumentRecord.key == normalized,
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_key(self, key: Any) -> Optional[ModelType]:
        """Get a document by its natural id.

        Args:
            key: Id in any stored representation (``5``, ``"5"``, ``5.0``)

        Returns:
            The decoded document if found, None otherwise
        """
        try:
            record = await self._get_record(key)
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error retrieving {self.collection} by key {key}: {str(e)}",
                exc_info=True
            )
            raise DatabaseError(f"Failed to read {self.collection}", original_error=e)
        return self._decode(record) if record else None

    async def get_many(self, keys: Iterable[Any]) -> Dict[str, ModelType]:
        """Get documents for a set of ids, indexed by normalized id."""
        normalized = {k for k in (coerce_key(key) for key in keys) if k is not None}
        if not normalized:
            return {}
        try:
            query = select(DocumentRecord).where(
                DocumentRecord.collection == self.collection,
                DocumentRecord.key.in_(normalized),
            )
            result = await self.session.execute(query)
            records = result.scalars().all()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error retrieving {self.collection} batch: {str(e)}",
                exc_info=True
            )
            raise DatabaseError(f"Failed to read {self.collection}", original_error=e)
        return {record.key: self._decode(record) for record in records}

    async def find(
        self, predicate: Optional[Callable[[ModelType], bool]] = None
    ) -> List[ModelType]:
        """Find documents in insertion order, optionally filtered.

        Args:
            predicate: Filter applied to each decoded document

        Returns:
            List of matching documents
        """
        try:
            query = (
                select(DocumentRecord)
                .where(DocumentRecord.collection == self.collection)
                .order_by(DocumentRecord.id)
            )
            result = await self.session.execute(query)
            records = result.scalars().all()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error retrieving all {self.collection}: {str(e)}",
                exc_info=True
            )
            raise DatabaseError(f"Failed to read {self.collection}", original_error=e)

        documents = [self._decode(record) for record in records]
        if predicate is None:
            return documents
        return [document for document in documents if predicate(document)]

    async def count(self, predicate: Optional[Callable[[ModelType], bool]] = None) -> int:
        """Count documents, optionally matching a predicate."""
        if predicate is not None:
            return len(await self.find(predicate))
        try:
            query = (
                select(func.count())
                .select_from(DocumentRecord)
                .where(DocumentRecord.collection == self.collection)
            )
            result = await self.session.execute(query)
            return result.scalar_one()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error counting {self.collection}: {str(e)}",
                exc_info=True
            )
            raise DatabaseError(f"Failed to count {self.collection}", original_error=e)

    async def insert(self, document: ModelType) -> ModelType:
        """Insert a new document.

        Raises:
            ConflictError: If a document with the same id already exists
        """
        record = DocumentRecord(
            collection=self.collection,
            key=document.key,
            data=document.to_document(),
        )
        try:
            self.session.add(record)
            await self.session.flush()
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError(
                f"{self.collection} document {document.key} already exists", original_error=e
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(
                f"Error creating {self.collection} {document.key}: {str(e)}",
                exc_info=True
            )
            raise DatabaseError(f"Failed to create {self.collection}", original_error=e)
        return self._decode(record)

    async def update_by_key(self, key: Any, fields: Dict[str, Any]) -> Optional[ModelType]:
        """Update whitelisted fields of a document.

        Args:
            key: Natural id of the document
            fields: Model field names mapped to their new values

        Returns:
            The updated document if found, None otherwise
        """
        try:
            record = await self._get_record(key)
            if record is None:
                return None

            current = self._decode(record)
            updated = current.model_copy(update=fields)
            # Merge so stored fields the model does not know about survive
            record.data = {**record.data, **updated.to_document()}

            await self.session.flush()
            await self.session.commit()
            return self._decode(record)
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(
                f"Error updating {self.collection} {key}: {str(e)}",
                exc_info=True
            )
            raise DatabaseError(f"Failed to update {self.collection}", original_error=e)

    async def max_numeric_key(self, prefix: str = "") -> int:
        """Largest numeric id in the collection, ignoring ``prefix``; 0 when none."""
        try:
            query = select(DocumentRecord.key).where(DocumentRecord.collection == self.collection)
            result = await self.session.execute(query)
            keys = result.scalars().all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to read {self.collection} ids", original_error=e)

        numbers = []
        for key in keys:
            suffix = key[len(prefix):] if prefix and key.startswith(prefix) else key
            kind, value = key_sort_value(suffix)
            if kind == 0:
                numbers.append(value)
        return max(numbers, default=0)
