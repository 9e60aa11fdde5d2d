"""
Pydantic schemas for API requests and responses
"""
from typing import List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Citation(CamelModel):
    document_name: str = Field("", alias="documentName")
    snippet: str = ""
    page_number: int = Field(0, alias="pageNumber")


class QARequest(CamelModel):
    question: str = Field(validation_alias=AliasChoices("question", "message"))
    document_ids: Optional[List[str]] = Field(None, alias="documentIds")
    top_k: Optional[int] = Field(None, alias="topK")


class QAResponse(CamelModel):
    answer: str
    citations: List[Citation] = []


class IngestRequest(CamelModel):
    document_id: str = Field(alias="documentId")
    reindex: bool = False


class IngestResponse(CamelModel):
    success: bool = True
    chunk_count: int = Field(alias="chunkCount")


class UpdateTextRequest(CamelModel):
    extracted_text: str = Field(alias="extractedText")


class DocumentInfo(CamelModel):
    id: str
    name: str
    filename: str
    file_size: int = Field(alias="fileSize")
    status: str
    chunk_count: int = Field(alias="chunkCount")
    error_message: Optional[str] = Field(None, alias="errorMessage")
    created_at: Optional[str] = Field(None, alias="createdAt")
    indexed_at: Optional[str] = Field(None, alias="indexedAt")


class DocumentDetail(DocumentInfo):
    extracted_text: Optional[str] = Field(None, alias="extractedText")


class SearchResult(CamelModel):
    document_id: str = Field(alias="documentId")
    document_name: str = Field(alias="documentName")
    chunk_index: int = Field(alias="chunkIndex")
    content: str
    score: float


class StatusResponse(CamelModel):
    status: str
    document_count: int = Field(alias="documentCount")
    chunk_count: int = Field(alias="chunkCount")
