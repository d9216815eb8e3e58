"""FastAPI routes for the knowledge-base document API.

Endpoint                                                   Method  Description
-----------------------------------------------------------------------------
/api/v1/knowledge/collections                              POST    Create a collection
/api/v1/knowledge/collections/{collection}                 GET     Collection existence (404 if missing)
/api/v1/knowledge/{collection}/documents/upload            POST    Batch upload files
/api/v1/knowledge/{collection}/documents/import            POST    Import pre-chunked text
/api/v1/knowledge/{collection}/documents/page              POST    List documents (filter body)
/api/v1/knowledge/{collection}/documents/{file_id}/file    GET     Download original bytes
/api/v1/knowledge/{collection}/documents/{file_id}         DELETE  Delete one document
/api/v1/knowledge/{collection}/documents                   DELETE  Delete all matching (filter body)
/api/v1/knowledge/health                                   GET     Health + provider names

The KnowledgeService is resolved from ``app.state`` (populated at startup
in ``kbase/main.py``) through an ``Annotated`` dependency.
"""

from __future__ import annotations

from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Body, Depends, Request, Response

from kbase.api.schemas import (
    CollectionResponse,
    CreateCollectionRequest,
    DeleteResponse,
    HealthResponse,
    ImportContentRequest,
    ImportContentResponse,
    UploadDocumentsRequest,
)
from kbase.models.knowledge import (
    KnowledgeFile,
    KnowledgeFileFilter,
    PagedItems,
    UploadKnowledgeResult,
)
from kbase.services.knowledge.knowledge_service import KnowledgeService
from kbase.utils.errors import CollectionNotFoundError

_VERSION = "0.1.0"

router = APIRouter(prefix="/api/v1/knowledge", tags=["knowledge"])


def _get_knowledge_service(request: Request) -> KnowledgeService:
    return request.app.state.knowledge_service


KnowledgeServiceDep = Annotated[KnowledgeService, Depends(_get_knowledge_service)]


# ---------------------------------------------------------------------------
# Health & collections
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health(service: KnowledgeServiceDep) -> HealthResponse:
    return HealthResponse(status="ok", version=_VERSION, providers=service.provider_names())


@router.post("/collections", response_model=CollectionResponse)
async def create_collection(
    body: CreateCollectionRequest,
    service: KnowledgeServiceDep,
) -> CollectionResponse:
    created = await service.create_collection(body.collection, body.dimension)
    return CollectionResponse(collection=body.collection, exists=True, created=created)


@router.get("/collections/{collection}", response_model=CollectionResponse)
async def get_collection(collection: str, service: KnowledgeServiceDep) -> CollectionResponse:
    if not await service.collection_exists(collection):
        raise CollectionNotFoundError(message=f"Collection '{collection}' does not exist")
    return CollectionResponse(collection=collection, exists=True)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@router.post("/{collection}/documents/upload", response_model=UploadKnowledgeResult)
async def upload_documents(
    collection: str,
    body: UploadDocumentsRequest,
    service: KnowledgeServiceDep,
) -> UploadKnowledgeResult:
    return await service.upload_documents(
        collection, body.files, body.chunk_options, user_id=body.user_id
    )


@router.post("/{collection}/documents/import", response_model=ImportContentResponse)
async def import_document_content(
    collection: str,
    body: ImportContentRequest,
    service: KnowledgeServiceDep,
) -> ImportContentResponse:
    success = await service.import_document_content(
        collection,
        body.file_name,
        body.file_source,
        body.contents,
        ref_data=body.ref_data,
        payload=body.payload,
        user_id=body.user_id,
    )
    return ImportContentResponse(success=success, file_name=body.file_name)


# ---------------------------------------------------------------------------
# Listing & retrieval
# ---------------------------------------------------------------------------


@router.post("/{collection}/documents/page", response_model=PagedItems[KnowledgeFile])
async def get_paged_documents(
    collection: str,
    service: KnowledgeServiceDep,
    filter: Annotated[KnowledgeFileFilter | None, Body()] = None,
) -> PagedItems[KnowledgeFile]:
    return await service.get_paged_documents(collection, filter or KnowledgeFileFilter())


@router.get("/{collection}/documents/{file_id}/file")
async def get_document_file(
    collection: str,
    file_id: str,
    service: KnowledgeServiceDep,
) -> Response:
    binary = await service.get_document_binary_data(collection, file_id)
    return Response(
        content=binary.data,
        media_type=binary.content_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(binary.file_name)}",
        },
    )


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


@router.delete("/{collection}/documents/{file_id}", response_model=DeleteResponse)
async def delete_document(
    collection: str,
    file_id: str,
    service: KnowledgeServiceDep,
) -> DeleteResponse:
    return DeleteResponse(success=await service.delete_document(collection, file_id))


@router.delete("/{collection}/documents", response_model=DeleteResponse)
async def delete_documents(
    collection: str,
    service: KnowledgeServiceDep,
    filter: Annotated[KnowledgeFileFilter | None, Body()] = None,
) -> DeleteResponse:
    return DeleteResponse(
        success=await service.delete_documents(collection, filter or KnowledgeFileFilter())
    )
