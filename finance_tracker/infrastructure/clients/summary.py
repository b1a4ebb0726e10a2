"""Chat-completion client with exponential backoff retry for spending summaries"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

import httpx
import pydantic

from finance_tracker.domain.exceptions import SummaryFailedError
from finance_tracker.domain.models import RetryPolicy, SummaryRequest
from finance_tracker.domain.prompts import SYSTEM_PROMPT, build_prompt
from finance_tracker.infrastructure.clients.http import open_client
from finance_tracker.infrastructure.clients.schemas import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
)
from finance_tracker.infrastructure.observability.metrics import (
    summary_attempt_failures_counter,
    summary_latency_histogram,
)

LOGGER = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class SummaryAttemptError(Exception):
    """A single attempt failed; `reason` is transport, status or parse"""

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason


def parse_completion(body: object) -> str:
    """
    Extract the first choice's text from a chat-completion body.

    Raises:
        SummaryAttemptError: Body has the wrong shape, carries an error object,
            has no choices, or the first choice is empty
    """
    try:
        completion = ChatCompletionResponse.model_validate(body)
    except pydantic.ValidationError as e:
        raise SummaryAttemptError(f"Unexpected response shape: {e.error_count()} errors", "parse") from e

    if completion.error is not None:
        raise SummaryAttemptError(
            f"API error: {completion.error.message} (code: {completion.error.code})", "parse"
        )
    if not completion.choices:
        raise SummaryAttemptError("Response contained no choices", "parse")

    content = completion.choices[0].message.content
    if not content or not content.strip():
        raise SummaryAttemptError("First choice has empty content", "parse")

    LOGGER.info("Summary received", extra={"model": completion.model, "provider": completion.provider})
    return content


class SummaryGenerator:
    """Client for an OpenAI-compatible chat-completion endpoint"""

    def __init__(
        self,
        url: str,
        api_key: str,
        model: str,
        timeout: float = 360.0,
        temperature: Optional[float] = 0.4,
        policy: Optional[RetryPolicy] = None,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.url = url
        self.api_key = api_key
        self.models: List[str] = [m.strip() for m in model.split(",") if m.strip()]
        self.timeout = timeout
        self.temperature = temperature
        self.policy = policy or RetryPolicy()
        self._client = client
        self._sleep = sleep

    def build_payload(self, prompt: str) -> dict:
        request = ChatCompletionRequest(
            model=self.models[0] if self.models else "",
            # OpenRouter falls back through `models` in order
            models=self.models if len(self.models) > 1 else None,
            messages=[
                ChatMessage(role="system", content=SYSTEM_PROMPT),
                ChatMessage(role="user", content=prompt),
            ],
            temperature=self.temperature,
        )
        return request.model_dump(exclude_none=True)

    async def _attempt(self, client: httpx.AsyncClient, payload: dict) -> str:
        try:
            with summary_latency_histogram.time():
                response = await client.post(
                    self.url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    timeout=self.timeout,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SummaryAttemptError(
                f"API request failed with status {e.response.status_code}", "status"
            ) from e
        except httpx.RequestError as e:
            raise SummaryAttemptError(f"Request error: {e!r}", "transport") from e

        try:
            body = response.json()
        except ValueError as e:
            raise SummaryAttemptError("Response body is not JSON", "parse") from e

        return parse_completion(body)

    async def summarize(self, request: SummaryRequest, policy: Optional[RetryPolicy] = None) -> str:
        """
        Generate a summary with retry logic.

        Retry strategy:
        - Exponential backoff: 0.5s, 1s, 2s, 4s, ... (initial_delay * multiplier^(attempt-1))
        - Retries on transport errors, non-2xx statuses and malformed bodies
        - No sleep after the final attempt

        Raises:
            SummaryFailedError: After policy.max_attempts failed attempts
        """
        policy = policy or self.policy
        payload = self.build_payload(build_prompt(request))
        LOGGER.debug("Generated analysis prompt", extra={"prompt": payload["messages"][-1]["content"]})

        attempt = 0
        last_error: Optional[str] = None
        async with open_client(self._client, self.timeout) as client:
            while attempt < policy.max_attempts:
                try:
                    return await self._attempt(client, payload)

                except SummaryAttemptError as e:
                    attempt += 1
                    last_error = str(e)
                    summary_attempt_failures_counter.labels(reason=e.reason).inc()

                    if attempt >= policy.max_attempts:
                        break

                    delay = policy.delay_for(attempt)
                    LOGGER.warning(
                        "Summary attempt failed, retrying after delay",
                        extra={
                            "attempt": attempt,
                            "max_attempts": policy.max_attempts,
                            "delay_seconds": delay,
                            "error": last_error,
                        },
                    )
                    await self._sleep(delay)

        raise SummaryFailedError(
            f"All {policy.max_attempts} summary attempts failed. Last error: {last_error}",
            attempts=attempt,
            last_error=last_error,
        )
