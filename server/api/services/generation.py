"""
Text generation service using Claude
"""
import asyncio
from functools import partial
from typing import Optional

import anthropic
import httpx

from core.config import ANTHROPIC_API_KEY, GENERATION_MODEL, GENERATION_MAX_TOKENS, GENERATION_TIMEOUT
from core.errors import Misconfigured, UpstreamFailure, ServiceUnavailable, ServiceTimeout
from utils.logging import log


class TextGenerator:
    """Single-shot text completion: prompt in, text out."""

    async def complete(self, prompt: str) -> str:
        raise NotImplementedError

    async def close(self):
        pass


class ClaudeGenerator(TextGenerator):
    """Completion through the Anthropic Messages API."""

    def __init__(
        self,
        api_key: Optional[str] = ANTHROPIC_API_KEY,
        model: str = GENERATION_MODEL,
        max_tokens: int = GENERATION_MAX_TOKENS,
        timeout: float = GENERATION_TIMEOUT,
        http_client: Optional[httpx.Client] = None
    ):
        if not api_key:
            raise Misconfigured("ANTHROPIC_API_KEY is not set")
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        if http_client:
            self.client = anthropic.Anthropic(api_key=api_key, http_client=http_client)
        else:
            self.client = anthropic.Anthropic(api_key=api_key)
        log(f"✅ Claude client initialized ({model})")

    async def complete(self, prompt: str) -> str:
        # Run the blocking Claude API call in a thread pool to avoid blocking event loop.
        # A timed-out call keeps running in its thread; only the request stops waiting.
        loop = asyncio.get_event_loop()
        call = loop.run_in_executor(
            None,
            partial(
                self.client.messages.create,
                model=self.model,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
                messages=[{"role": "user", "content": prompt}]
            )
        )

        try:
            message = await asyncio.wait_for(call, timeout=self.timeout)
        except (asyncio.TimeoutError, anthropic.APITimeoutError) as e:
            raise ServiceTimeout(internal=f"Claude call exceeded {self.timeout:.0f}s: {e}")
        except anthropic.AuthenticationError as e:
            raise Misconfigured("Generation service rejected the API key", internal=str(e))
        except anthropic.APIConnectionError as e:
            raise ServiceUnavailable(internal=f"Claude unreachable: {e}")
        except anthropic.RateLimitError as e:
            raise ServiceUnavailable(internal=f"Claude rate limited: {e}")
        except anthropic.InternalServerError as e:
            raise ServiceUnavailable(internal=f"Claude server error: {e}")
        except anthropic.APIError as e:
            raise UpstreamFailure(internal=f"Claude API error: {type(e).__name__}: {e}")

        usage = message.usage
        log(f"   📖 {usage.input_tokens} input tokens, {usage.output_tokens} output tokens")

        text = "".join(block.text for block in message.content if getattr(block, "type", "") == "text")
        if not text:
            raise UpstreamFailure(internal="Claude returned no text content")
        return text


def create_generator() -> ClaudeGenerator:
    """Build the Claude generator with connection timeouts. Raises Misconfigured without a key."""
    if not ANTHROPIC_API_KEY:
        raise Misconfigured("ANTHROPIC_API_KEY is not set")

    # Create custom HTTP client with connection timeout
    http_client = httpx.Client(
        timeout=httpx.Timeout(
            connect=30.0,                 # 30s to establish connection
            read=GENERATION_TIMEOUT,
            write=30.0,                   # 30s to send request
            pool=30.0                     # 30s to get connection from pool
        )
    )
    return ClaudeGenerator(http_client=http_client)
