from adintel.vector.index import (
    AddResult,
    CollectionExistsError,
    CollectionNotFoundError,
    InvalidIndexRequestError,
    VectorIndex,
    VectorIndexError,
)

__all__ = [
    "AddResult",
    "CollectionExistsError",
    "CollectionNotFoundError",
    "InvalidIndexRequestError",
    "VectorIndex",
    "VectorIndexError",
]
