"""Similarity index collections and documents."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from adintel.api.dependencies import get_vector_index
from adintel.api.openapi_responses import (
    bad_request_response,
    merge_responses,
    not_found_response,
)
from adintel.api.schemas.collections import (
    AddDocumentsRequest,
    CollectionCreateRequest,
    CollectionResponse,
    QueryCollectionRequest,
)
from adintel.core.errors import ServiceError, build_http_error, service_http_error
from adintel.vector.index import VectorIndex

router = APIRouter()

_collection_not_found = not_found_response(
    error="collection_not_found",
    message="Collection 'user_default' not found",
    description="Collection not found",
)


@router.get("", summary="List collections", response_model=list[CollectionResponse])
async def list_collections(
    vector_index: VectorIndex = Depends(get_vector_index),
) -> list[CollectionResponse]:
    collections = await vector_index.list_collections()
    return [CollectionResponse.model_validate(collection) for collection in collections]


@router.post(
    "",
    summary="Create a collection",
    status_code=status.HTTP_201_CREATED,
    response_model=CollectionResponse,
    responses=bad_request_response(message="Collection name is required"),
)
async def create_collection(
    request_data: CollectionCreateRequest,
    vector_index: VectorIndex = Depends(get_vector_index),
) -> CollectionResponse:
    if not request_data.name:
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="bad_request",
            message="Collection name is required",
        )
    try:
        collection = await vector_index.create_collection(request_data.name, request_data.metadata)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return CollectionResponse.model_validate(collection)


@router.get(
    "/{name}",
    summary="Get a collection",
    response_model=CollectionResponse,
    responses=_collection_not_found,
)
async def get_collection(
    name: str, vector_index: VectorIndex = Depends(get_vector_index)
) -> CollectionResponse:
    try:
        collection = await vector_index.get_collection(name)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return CollectionResponse.model_validate(collection)


@router.delete("/{name}", summary="Delete a collection", responses=_collection_not_found)
async def delete_collection(
    name: str, vector_index: VectorIndex = Depends(get_vector_index)
) -> dict[str, Any]:
    try:
        await vector_index.delete_collection(name)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return {"success": True, "message": f"Collection '{name}' deleted"}


@router.post(
    "/{name}/documents",
    summary="Add documents to a collection",
    description="Documents whose id is already present are skipped.",
    responses=bad_request_response(message="Documents array is required"),
)
async def add_documents(
    name: str,
    request_data: AddDocumentsRequest,
    vector_index: VectorIndex = Depends(get_vector_index),
) -> dict[str, Any]:
    if not request_data.documents:
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="bad_request",
            message="Documents array is required",
        )
    try:
        result = await vector_index.add_documents(
            request_data.ids, request_data.documents, request_data.metadatas, collection=name
        )
    except ServiceError as exc:
        if exc.error_code == "bad_request":
            raise build_http_error(
                status_code=status.HTTP_400_BAD_REQUEST, error="bad_request", message=str(exc)
            ) from exc
        raise service_http_error(exc) from exc
    return result.as_dict()


@router.get(
    "/{name}/documents",
    summary="List documents in a collection",
    responses=_collection_not_found,
)
async def get_documents(
    name: str, vector_index: VectorIndex = Depends(get_vector_index)
) -> dict[str, Any]:
    try:
        documents = await vector_index.get_documents(name)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return {"success": True, "documents": documents}


@router.post(
    "/{name}/query",
    summary="Similarity query",
    description="Returns the nearest documents per query text, closest first.",
    responses=merge_responses(
        bad_request_response(message="queryTexts array is required"), _collection_not_found
    ),
)
async def query_collection(
    name: str,
    request_data: QueryCollectionRequest,
    vector_index: VectorIndex = Depends(get_vector_index),
) -> dict[str, Any]:
    if not request_data.query_texts:
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="bad_request",
            message="queryTexts array is required",
        )
    try:
        results = await vector_index.query_collection(
            name, request_data.query_texts, request_data.n_results, request_data.where
        )
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return {"success": True, "results": results}
