"""
Embedding clients: local sentence-transformers model or a remote HTTP service
"""
import asyncio
from functools import partial
from typing import List, Optional

import httpx

from core.config import (
    EMBEDDING_BACKEND, EMBEDDING_MODEL, EMBEDDING_DIM,
    EMBEDDING_API_URL, EMBEDDING_API_KEY, EMBEDDING_TIMEOUT, EMBEDDING_CONCURRENCY
)
from core.errors import Misconfigured, UpstreamFailure, ServiceUnavailable, ServiceTimeout
from utils.logging import log


class EmbeddingClient:
    """
    Converts text to fixed-length vectors.

    Subclasses implement ``_embed``. ``embed_batch`` keeps input order and runs
    at most ``concurrency`` calls at once; the default of 1 embeds strictly one
    text after another to stay within the service's rate limits.
    """

    def __init__(self, dimension: int = EMBEDDING_DIM, concurrency: int = EMBEDDING_CONCURRENCY):
        self.dimension = dimension
        self.concurrency = max(1, concurrency)

    async def _embed(self, text: str) -> List[float]:
        raise NotImplementedError

    async def embed(self, text: str) -> List[float]:
        vector = [float(v) for v in await self._embed(text)]
        if self.dimension and len(vector) != self.dimension:
            raise UpstreamFailure(
                internal=f"expected {self.dimension} dimensions, got {len(vector)}"
            )
        return vector

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        if self.concurrency == 1:
            return [await self.embed(text) for text in texts]

        semaphore = asyncio.Semaphore(self.concurrency)

        async def embed_limited(text: str) -> List[float]:
            async with semaphore:
                return await self.embed(text)

        tasks = [asyncio.ensure_future(embed_limited(text)) for text in texts]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # No call of a failed batch outlives it
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def close(self):
        pass


class SentenceTransformerEmbeddings(EmbeddingClient):
    """Local sentence-transformers model."""

    def __init__(self, model_name: str = EMBEDDING_MODEL, **kwargs):
        super().__init__(**kwargs)
        if not model_name:
            raise Misconfigured("EMBEDDING_MODEL is not set")
        self.model_name = model_name
        self.model = None

    def load(self):
        from sentence_transformers import SentenceTransformer

        log(f"🧠 Loading embedding model: {self.model_name}...")
        self.model = SentenceTransformer(self.model_name)
        log(f"✅ Embedding model loaded")

    async def _embed(self, text: str) -> List[float]:
        if self.model is None:
            raise ServiceUnavailable(internal="Embedding model not loaded")

        # encode() is CPU bound, keep it off the event loop
        loop = asyncio.get_event_loop()
        vector = await loop.run_in_executor(
            None,
            partial(self.model.encode, text, show_progress_bar=False)
        )
        return vector.tolist()


class HttpEmbeddings(EmbeddingClient):
    """
    Remote embedding service.

    Sends ``{"model": ..., "input": text}`` to ``{base_url}/api/embed`` and
    accepts either an Ollama style ``{"embeddings": [[...]]}`` or an
    OpenAI style ``{"data": [{"embedding": [...]}]}`` body.
    """

    def __init__(
        self,
        base_url: Optional[str] = EMBEDDING_API_URL,
        model_name: str = EMBEDDING_MODEL,
        api_key: str = EMBEDDING_API_KEY,
        timeout: float = EMBEDDING_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        super().__init__(**kwargs)
        if not base_url:
            raise Misconfigured("EMBEDDING_API_URL is not set")
        if not model_name:
            raise Misconfigured("EMBEDDING_MODEL is not set")
        self.model_name = model_name

        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport
        )

    async def _embed(self, text: str) -> List[float]:
        try:
            response = await self.client.post(
                "/api/embed",
                json={"model": self.model_name, "input": text}
            )
        except httpx.TimeoutException as e:
            raise ServiceTimeout(internal=f"Embedding request timed out: {e}")
        except httpx.TransportError as e:
            raise ServiceUnavailable(internal=f"Embedding service unreachable: {e}")

        if response.status_code in (401, 403):
            raise Misconfigured(
                "Embedding service rejected the credentials",
                internal=response.text[:200]
            )
        if response.status_code == 429 or response.status_code >= 500:
            raise ServiceUnavailable(
                internal=f"Embedding service returned {response.status_code}: {response.text[:200]}"
            )
        if response.status_code != 200:
            raise UpstreamFailure(
                internal=f"Embedding request failed with {response.status_code}: {response.text[:200]}"
            )

        try:
            return self.extract_embedding(response.json())
        except (ValueError, TypeError, AttributeError, IndexError) as e:
            raise UpstreamFailure(internal=f"Unparsable embedding response: {e}")

    @staticmethod
    def extract_embedding(data: dict) -> List[float]:
        if not isinstance(data, dict):
            raise ValueError("response is not an object")
        if data.get("embeddings"):
            vector = data["embeddings"][0]
        elif data.get("data"):
            vector = data["data"][0].get("embedding")
        else:
            vector = data.get("embedding")
        if not isinstance(vector, list) or not vector:
            raise ValueError("no embedding in response")
        return vector

    async def close(self):
        await self.client.aclose()


def create_embedding_client(backend: str = EMBEDDING_BACKEND) -> EmbeddingClient:
    """Build the configured embedding client. Raises Misconfigured on bad settings."""
    if backend == "local":
        client = SentenceTransformerEmbeddings()
        client.load()
        return client
    if backend == "http":
        client = HttpEmbeddings()
        log(f"🧠 Using embedding service at {EMBEDDING_API_URL} ({client.model_name})")
        return client
    raise Misconfigured(f"Unknown EMBEDDING_BACKEND: {backend}")
