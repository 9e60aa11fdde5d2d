"""
StudyMate API - ask questions about your study documents
"""
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, UploadFile, File, Depends, Form, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from core import (
    init_db, get_session, close_db, get_owner_id, get_embedder, get_generator,
    StudyMateError, UpstreamFailure, Misconfigured, EmptyInput,
    MAX_FILE_SIZE_MB, API_SECRET_KEY, EMBEDDING_BACKEND
)
from models import Document
from models.schemas import (
    DocumentDetail, DocumentInfo, IngestRequest, IngestResponse, QARequest, QAResponse,
    SearchResult, StatusResponse, UpdateTextRequest
)
from services import (
    create_embedding_client, create_generator,
    create_document, get_document, list_documents, count_documents, update_text, delete_document,
    ingest_document, answer_question, search_similar_chunks, ChunkStore
)
from utils import log, log_exception


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Initialize database
    await init_db()

    try:
        app.state.generator = create_generator()
    except Misconfigured as e:
        app.state.generator = None
        log(f"⚠️  WARNING: {e.detail} - question answering disabled")

    try:
        app.state.embedder = create_embedding_client()
    except Misconfigured as e:
        app.state.embedder = None
        log(f"⚠️  WARNING: {e.detail} - ingestion and retrieval disabled")

    log(f"🚀 StudyMate API started")
    log(f"📦 Max file size: {MAX_FILE_SIZE_MB}MB")
    log(f"🧠 Embedding backend: {EMBEDDING_BACKEND}")
    log(f"🔐 API key auth: {'enabled' if API_SECRET_KEY != 'change-me-in-production' else 'disabled'}")

    yield

    # Cleanup
    for client in (app.state.embedder, app.state.generator):
        if client is not None:
            await client.close()
    await close_db()
    log("👋 StudyMate API shutting down")


# Initialize FastAPI app
app = FastAPI(title="StudyMate", lifespan=lifespan)

# CORS for web UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StudyMateError)
async def studymate_error_handler(request: Request, exc: StudyMateError):
    """Return {"error": ...}; upstream details stay in the server log."""
    if isinstance(exc, UpstreamFailure) or exc.status_code >= 500:
        log(f"❌ {request.method} {request.url.path} failed: {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


def _document_info(doc: Document, detail: bool = False):
    info = {
        "id": doc.id,
        "name": doc.name,
        "filename": doc.filename,
        "file_size": doc.file_size or 0,
        "status": doc.status,
        "chunk_count": doc.chunk_count or 0,
        "error_message": doc.error_message,
        "created_at": doc.created_at.isoformat() if doc.created_at else None,
        "indexed_at": doc.indexed_at.isoformat() if doc.indexed_at else None,
    }
    if detail:
        return DocumentDetail(**info, extracted_text=doc.extracted_text)
    return DocumentInfo(**info)


# ============================================================================
# API ROUTES
# ============================================================================

@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.get("/api/status", response_model=StatusResponse)
async def get_status(
    session: AsyncSession = Depends(get_session),
    owner_id: str = Depends(get_owner_id)
):
    """Get server status and the caller's index statistics."""
    return StatusResponse(
        status="ok",
        document_count=await count_documents(session, owner_id),
        chunk_count=await ChunkStore(session).count(owner_id)
    )


@app.get("/api/documents", response_model=List[DocumentInfo])
async def get_documents(
    session: AsyncSession = Depends(get_session),
    owner_id: str = Depends(get_owner_id)
):
    """List the caller's documents."""
    return [_document_info(doc) for doc in await list_documents(session, owner_id)]


@app.post("/api/documents", response_model=DocumentInfo)
async def upload_document(
    file: UploadFile = File(...),
    name: Optional[str] = Form(None),
    session: AsyncSession = Depends(get_session),
    owner_id: str = Depends(get_owner_id)
):
    """Upload a document and extract its text."""
    log(f"📤 Upload started: {file.filename}")
    content = await file.read()
    doc = await create_document(session, owner_id, file.filename or "upload.txt", content, name=name)
    return _document_info(doc)


@app.get("/api/documents/{document_id}", response_model=DocumentDetail)
async def get_document_detail(
    document_id: str,
    session: AsyncSession = Depends(get_session),
    owner_id: str = Depends(get_owner_id)
):
    """Get a document including its extracted text."""
    return _document_info(await get_document(session, owner_id, document_id), detail=True)


@app.put("/api/documents/{document_id}/text", response_model=DocumentDetail)
async def put_document_text(
    document_id: str,
    request: UpdateTextRequest,
    session: AsyncSession = Depends(get_session),
    owner_id: str = Depends(get_owner_id)
):
    """Replace a document's extracted text. Chunks are kept until the next reindex."""
    doc = await update_text(session, owner_id, document_id, request.extracted_text)
    return _document_info(doc, detail=True)


@app.delete("/api/documents/{document_id}")
async def remove_document(
    document_id: str,
    session: AsyncSession = Depends(get_session),
    owner_id: str = Depends(get_owner_id)
):
    """Delete a document and its chunks from the index."""
    await delete_document(session, owner_id, document_id)
    return {"success": True}


@app.post("/api/ingest", response_model=IngestResponse)
async def ingest(
    request: IngestRequest,
    session: AsyncSession = Depends(get_session),
    owner_id: str = Depends(get_owner_id),
    embedder=Depends(get_embedder)
):
    """Chunk and embed a completed document."""
    try:
        result = await ingest_document(
            session, owner_id, request.document_id, embedder, reindex=request.reindex
        )
    except StudyMateError:
        raise
    except Exception as e:
        log_exception(f"❌ Ingestion error: {type(e).__name__}: {str(e)}")
        raise StudyMateError("Failed to ingest document")
    return IngestResponse(success=True, chunk_count=result.chunk_count)


@app.post("/api/qa", response_model=QAResponse)
async def qa(
    request: QARequest,
    session: AsyncSession = Depends(get_session),
    owner_id: str = Depends(get_owner_id),
    embedder=Depends(get_embedder),
    generator=Depends(get_generator)
):
    """Answer a question from the caller's documents using RAG."""
    try:
        result = await answer_question(
            session, owner_id, request.question, embedder, generator,
            document_ids=request.document_ids, top_k=request.top_k
        )
    except StudyMateError:
        raise
    except Exception as e:
        log_exception(f"❌ QA error: {type(e).__name__}: {str(e)}")
        raise StudyMateError("Failed to answer question")
    return QAResponse(**result.to_dict())


@app.get("/api/search", response_model=List[SearchResult])
async def search(
    q: str,
    limit: int = 10,
    document_ids: Optional[List[str]] = Query(None, alias="documentIds"),
    session: AsyncSession = Depends(get_session),
    owner_id: str = Depends(get_owner_id),
    embedder=Depends(get_embedder)
):
    """Search the caller's chunks by semantic similarity."""
    if not q.strip():
        raise EmptyInput("Query cannot be empty")
    ranked, names = await search_similar_chunks(session, owner_id, q, embedder, document_ids, limit)
    return [
        SearchResult(
            document_id=item.chunk.document_id,
            document_name=names.get(item.chunk.document_id, item.chunk.document_id),
            chunk_index=item.chunk.chunk_index,
            content=item.chunk.content[:500] + "..." if len(item.chunk.content) > 500 else item.chunk.content,
            score=round(item.score, 4)
        )
        for item in ranked
    ]


@app.get("/")
async def root():
    """API root - redirect to documentation."""
    return {
        "name": "StudyMate",
        "version": "1.0.0",
        "docs": "/docs"
    }
