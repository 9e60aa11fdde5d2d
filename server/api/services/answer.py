"""
Answer synthesis: prompt construction, tolerant parsing of the model output,
and citation normalization
"""
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from core.config import MAX_CITATIONS, CITATION_SNIPPET_CHARS
from services.context import document_name, truncate
from services.generation import TextGenerator
from services.ranking import RankedChunk
from utils.logging import log

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

SYSTEM_PROMPT = """You are StudyMate, an academic assistant helping a student study their own documents.
- Answer using only the provided context when it is relevant.
- If the context does not contain the answer, say you are unsure rather than guessing.
- Be concise and structured: short paragraphs and bullet points.
- Include up to 3 citations, each with the document name and a short supporting snippet."""

NO_CONTEXT_PROMPT = """You are StudyMate, an academic assistant. The student has no processed documents in scope,
so answer briefly and clearly from general knowledge and mention that no documents were consulted."""

OUTPUT_SHAPE = """Return ONLY JSON, no extra text, with this shape:
{
  "answer": "string",
  "citations": [
    { "documentName": "string", "pageNumber": 0, "snippet": "string" }
  ]
}"""


@dataclass
class Citation:
    document_name: str
    snippet: str
    page_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"documentName": self.document_name, "snippet": self.snippet, "pageNumber": self.page_number}


@dataclass
class Parsed:
    answer: str
    citations: List[Any] = field(default_factory=list)


@dataclass
class Unparsed:
    raw_text: str


@dataclass
class Answer:
    answer: str
    citations: List[Citation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"answer": self.answer, "citations": [c.to_dict() for c in self.citations]}


def _load_object(candidate: str) -> Optional[dict]:
    first = candidate.find("{")
    last = candidate.rfind("}")
    if first != -1 and last > first:
        candidate = candidate[first:last + 1]
    try:
        data = json.loads(candidate)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def parse_model_output(text: str) -> Union[Parsed, Unparsed]:
    """
    Find the JSON object in a model reply.

    Parses the span between the first ``{`` and the last ``}``; if that is
    not a JSON object, tries again inside the first fenced code block.
    Fences quoted inside a JSON answer therefore do not break parsing.
    Anything that is not a JSON object comes back as ``Unparsed``.
    """
    text = text or ""
    data = _load_object(text)
    if data is None:
        fenced = _FENCED_BLOCK.search(text)
        if fenced:
            data = _load_object(fenced.group(1))
    if data is None:
        return Unparsed(raw_text=text)

    answer = data.get("answer")
    if not isinstance(answer, str):
        answer = "" if answer is None else json.dumps(answer)
    citations = data.get("citations")
    return Parsed(
        answer=answer.strip() or text,
        citations=citations if isinstance(citations, list) else []
    )


def _page_number(value) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def normalize_citations(raw: Sequence[Any], limit: int = MAX_CITATIONS) -> List[Citation]:
    """Keep well-formed citations (name or snippet present), at most ``limit``."""
    citations = []
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        name = str(item.get("documentName") or "").strip()
        snippet = str(item.get("snippet") or "").strip()
        if not name and not snippet:
            continue
        citations.append(Citation(document_name=name, snippet=snippet, page_number=_page_number(item.get("pageNumber"))))
        if len(citations) >= limit:
            break
    return citations


def citations_from_chunks(
    ranked: Sequence[RankedChunk],
    document_names: Mapping[str, str],
    limit: int = MAX_CITATIONS,
    snippet_chars: int = CITATION_SNIPPET_CHARS
) -> List[Citation]:
    """Citations taken straight from the best chunks, used when the model gives none."""
    return [
        Citation(
            document_name=document_name(document_names, item.chunk.document_id),
            snippet=truncate(item.chunk.content, snippet_chars)
        )
        for item in ranked[:limit]
    ]


def build_prompt(question: str, context: str, with_documents: bool = True) -> str:
    if not with_documents:
        return f"{NO_CONTEXT_PROMPT}\n\nQuestion: {question}\n\n{OUTPUT_SHAPE}"
    return f"{SYSTEM_PROMPT}\n\nContext:\n{context or '(no context)'}\n\nQuestion: {question}\n\n{OUTPUT_SHAPE}"


class AnswerSynthesizer:
    """Asks the generator for an answer and turns its reply into answer + citations."""

    def __init__(self, generator: TextGenerator, max_citations: int = MAX_CITATIONS):
        self.generator = generator
        self.max_citations = max_citations

    async def answer(
        self,
        question: str,
        context: str,
        ranked: Optional[Sequence[RankedChunk]] = None,
        document_names: Optional[Mapping[str, str]] = None,
        with_documents: bool = True
    ) -> Answer:
        """
        Generate an answer for ``question`` grounded in ``context``.

        Args:
            question: The user's question
            context: Assembled context block (may be empty)
            ranked: Chunks the context was built from; enables citation fallback
            document_names: document id -> display name, for fallback citations
            with_documents: False when no documents are in scope; no citations are returned

        Returns:
            Answer with at most ``max_citations`` citations
        """
        raw = await self.generator.complete(build_prompt(question, context, with_documents))
        outcome = parse_model_output(raw)

        if isinstance(outcome, Unparsed):
            log(f"⚠️  Model reply was not JSON, using raw text ({len(raw)} chars)")
            return Answer(answer=outcome.raw_text.strip() or outcome.raw_text, citations=[])

        if not with_documents:
            return Answer(answer=outcome.answer, citations=[])

        citations = normalize_citations(outcome.citations, self.max_citations)
        if not citations and ranked:
            citations = citations_from_chunks(ranked, document_names or {}, self.max_citations)
            log(f"📎 Model gave no citations, using {len(citations)} from top chunks")

        return Answer(answer=outcome.answer, citations=citations)
