"""Similarity index over content summaries, stored in Postgres with pgvector.

Documents live in ``index_documents`` keyed by ``(collection, id)``. Ranking,
metadata filtering and the result limit all run in SQL on the ``<=>`` cosine
distance operator. Inserts use ``INSERT ... ON CONFLICT DO NOTHING`` so the
at-most-one-entry-per-id rule holds even when two writers race on the same id.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from fastapi import status
from sqlalchemy import ColumnElement, and_, delete, or_, select, true
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from adintel.core.errors import ServiceError
from adintel.db.models.index_document import IndexCollection, IndexDocument
from adintel.llm.embeddings import Embedder

logger = logging.getLogger(__name__)


class VectorIndexError(ServiceError):
    """Base error for vector index failures."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, error_code: str = "vector_index_error") -> None:
        super().__init__(message, error_code)


class InvalidIndexRequestError(VectorIndexError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message, "bad_request")


class CollectionNotFoundError(VectorIndexError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, name: str) -> None:
        super().__init__(f"Collection '{name}' not found", "collection_not_found")


class CollectionExistsError(VectorIndexError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, name: str) -> None:
        super().__init__(f"Collection '{name}' already exists", "collection_exists")


@dataclass(frozen=True)
class AddResult:
    added: int
    skipped: int

    def as_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": True}
        if self.added:
            result["added"] = self.added
        if self.skipped or not self.added:
            result["skipped"] = self.skipped
        return result


def _metadata_field(key: str, operand: Any) -> ColumnElement[Any]:
    field = IndexDocument.document_metadata[key]
    sample = operand[0] if isinstance(operand, list | tuple) and operand else operand
    if isinstance(sample, bool):
        return field.as_boolean()
    if isinstance(sample, int):
        return field.as_integer()
    if isinstance(sample, float):
        return field.as_float()
    return field.as_string()


def where_clauses(where: dict[str, Any] | None) -> list[ColumnElement[bool]]:
    """Translate a Chroma-style metadata filter ($eq, $ne, $in, $nin, $and, $or) to SQL."""
    if not where:
        return []
    clauses: list[ColumnElement[bool]] = []
    for key, condition in where.items():
        if key in ("$and", "$or"):
            nested = [and_(true(), *where_clauses(clause)) for clause in condition]
            clauses.append(and_(*nested) if key == "$and" else or_(*nested))
            continue
        if not isinstance(condition, dict):
            condition = {"$eq": condition}
        for operator, operand in condition.items():
            field = _metadata_field(key, operand)
            if operator == "$eq":
                clauses.append(field == operand)
            elif operator == "$ne":
                clauses.append(or_(field.is_(None), field != operand))
            elif operator == "$in":
                clauses.append(field.in_(operand))
            elif operator == "$nin":
                clauses.append(or_(field.is_(None), field.not_in(operand)))
            else:
                raise InvalidIndexRequestError(f"Unsupported filter operator: {operator}")
    return clauses


class VectorIndex:
    """Collection and document operations for the similarity index."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        embedder: Embedder,
        default_collection: str,
    ) -> None:
        self._session_maker = session_maker
        self._embedder = embedder
        self.default_collection = default_collection

    async def list_collections(self) -> list[IndexCollection]:
        async with self._session_maker() as session:
            result = await session.execute(select(IndexCollection).order_by(IndexCollection.name))
            return list(result.scalars().all())

    async def create_collection(
        self, name: str, metadata: dict[str, Any] | None = None
    ) -> IndexCollection:
        async with self._session_maker() as session:
            if await session.get(IndexCollection, name) is not None:
                raise CollectionExistsError(name)
            collection = IndexCollection(name=name, collection_metadata=metadata)
            session.add(collection)
            await session.commit()
            return collection

    async def get_collection(self, name: str) -> IndexCollection:
        async with self._session_maker() as session:
            collection = await session.get(IndexCollection, name)
            if collection is None:
                raise CollectionNotFoundError(name)
            return collection

    async def delete_collection(self, name: str) -> None:
        async with self._session_maker() as session:
            collection = await session.get(IndexCollection, name)
            if collection is None:
                raise CollectionNotFoundError(name)
            await session.execute(delete(IndexDocument).where(IndexDocument.collection == name))
            await session.delete(collection)
            await session.commit()

    async def _ensure_collection(self, session: AsyncSession, name: str) -> None:
        if await session.get(IndexCollection, name) is None:
            stmt = self._insert(session, IndexCollection).values(name=name)
            await session.execute(stmt.on_conflict_do_nothing(index_elements=["name"]))

    def _insert(self, session: AsyncSession, model: type[Any]) -> Any:
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(model.__table__)
        if dialect == "sqlite":
            return sqlite_insert(model.__table__)
        raise VectorIndexError(f"Unsupported database dialect for vector index: {dialect}")

    async def document_exists(self, id: str, collection: str | None = None) -> bool:
        name = collection or self.default_collection
        async with self._session_maker() as session:
            result = await session.execute(
                select(IndexDocument.id).where(
                    IndexDocument.collection == name, IndexDocument.id == id
                )
            )
            return result.scalar_one_or_none() is not None

    async def add_documents(
        self,
        ids: list[str] | None,
        documents: list[str],
        metadatas: list[dict[str, Any] | None] | None = None,
        collection: str | None = None,
    ) -> AddResult:
        """Insert documents whose ids are not yet present; existing ids are skipped."""
        name = collection or self.default_collection
        if ids is None:
            ids = [uuid.uuid4().hex for _ in documents]
        if len(ids) != len(documents):
            raise InvalidIndexRequestError("ids and documents must have the same length")
        metadatas = list(metadatas) if metadatas else [None] * len(documents)
        if len(metadatas) != len(documents):
            raise InvalidIndexRequestError("metadatas and documents must have the same length")

        async with self._session_maker() as session:
            existing = await session.execute(
                select(IndexDocument.id).where(
                    IndexDocument.collection == name, IndexDocument.id.in_(ids)
                )
            )
            known = set(existing.scalars().all())
            rows: dict[str, tuple[str, dict[str, Any] | None]] = {}
            for doc_id, document, metadata in zip(ids, documents, metadatas, strict=True):
                if doc_id not in known and doc_id not in rows:
                    rows[doc_id] = (document, metadata)
            if not rows:
                return AddResult(added=0, skipped=len(ids))

            embeddings = await self._embedder.embed([doc for doc, _ in rows.values()])
            await self._ensure_collection(session, name)
            stmt = (
                self._insert(session, IndexDocument)
                .values(
                    [
                        {
                            "collection": name,
                            "id": doc_id,
                            "document": document,
                            "document_metadata": metadata,
                            "embedding": embedding,
                        }
                        for (doc_id, (document, metadata)), embedding in zip(
                            rows.items(), embeddings, strict=True
                        )
                    ]
                )
                .on_conflict_do_nothing(index_elements=["collection", "id"])
                .returning(IndexDocument.__table__.c.id)
            )
            result = await session.execute(stmt)
            added = len(result.scalars().all())
            await session.commit()

        skipped = len(ids) - added
        if skipped:
            logger.info("Skipped %d already-indexed document(s) in %s", skipped, name)
        return AddResult(added=added, skipped=skipped)

    async def get_documents(self, collection: str) -> dict[str, list[Any]]:
        await self.get_collection(collection)
        async with self._session_maker() as session:
            result = await session.execute(
                select(IndexDocument)
                .where(IndexDocument.collection == collection)
                .order_by(IndexDocument.created_at)
            )
            docs = result.scalars().all()
        return {
            "ids": [doc.id for doc in docs],
            "documents": [doc.document for doc in docs],
            "metadatas": [doc.document_metadata for doc in docs],
        }

    async def query_collection(
        self,
        collection: str,
        query_texts: list[str],
        n_results: int = 5,
        where: dict[str, Any] | None = None,
    ) -> dict[str, list[list[Any]]]:
        """Return the nearest documents per query text, closest first."""
        await self.get_collection(collection)
        filters = where_clauses(where)
        query_embeddings = await self._embedder.embed(query_texts)

        results: dict[str, list[list[Any]]] = {
            "ids": [],
            "documents": [],
            "metadatas": [],
            "distances": [],
        }
        async with self._session_maker() as session:
            for query_embedding in query_embeddings:
                distance = IndexDocument.embedding.cosine_distance(query_embedding).label(
                    "distance"
                )
                rows = (
                    await session.execute(
                        select(
                            IndexDocument.id,
                            IndexDocument.document,
                            IndexDocument.document_metadata,
                            distance,
                        )
                        .where(IndexDocument.collection == collection, *filters)
                        .order_by(distance)
                        .limit(n_results)
                    )
                ).all()
                results["ids"].append([row.id for row in rows])
                results["documents"].append([row.document for row in rows])
                results["metadatas"].append([row.document_metadata for row in rows])
                results["distances"].append([float(row.distance) for row in rows])
        return results

    async def delete_documents(self, ids: list[str], collection: str | None = None) -> int:
        name = collection or self.default_collection
        async with self._session_maker() as session:
            result = await session.execute(
                delete(IndexDocument).where(
                    IndexDocument.collection == name, IndexDocument.id.in_(ids)
                )
            )
            await session.commit()
            return result.rowcount or 0
