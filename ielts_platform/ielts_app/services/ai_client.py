"""Completion-service client for calling LLM providers (e.g., OpenAI)."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass

import requests
from flask import current_app

from ..metrics import COMPLETION_LATENCY
from .errors import UpstreamServiceError

SYSTEM_PROMPT = (
    "You are an experienced IELTS Academic Reading test writer. Respond with STRICT JSON only, "
    "no prose and no markdown. Follow the provided instructions exactly and ensure every object "
    "includes all required fields."
)
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


def _is_transient(exc: requests.RequestException) -> bool:
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    response = getattr(exc, "response", None)
    return response is not None and response.status_code in RETRYABLE_STATUS


@dataclass
class AIClient:
    api_key: str
    api_base: str
    default_model: str

    def chat(self, messages, model: str | None = None, temperature: float | None = None):
        if not self.api_key:
            raise UpstreamServiceError("OPENAI_API_KEY / AI_API_KEY is not configured")

        app = current_app
        if temperature is None:
            temperature = float(app.config.get("AI_TEMPERATURE", 0.7))
        payload = {
            "model": model or self.default_model,
            "messages": messages,
            "temperature": temperature,
        }
        connect_timeout = app.config.get("AI_CONNECT_TIMEOUT_SEC", 15)
        read_timeout = app.config.get("AI_READ_TIMEOUT_SEC", 60)
        max_retries = max(1, int(app.config.get("AI_API_MAX_RETRIES", 2)))
        backoff = float(app.config.get("AI_API_RETRY_BACKOFF", 2.0))

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        attempt = 0
        while True:
            attempt += 1
            started = time.perf_counter()
            try:
                response = requests.post(
                    f"{self.api_base.rstrip('/')}/chat/completions",
                    headers=headers,
                    data=json.dumps(payload),
                    timeout=(connect_timeout, read_timeout),
                )
                response.raise_for_status()
                return response.json()
            except requests.RequestException as exc:
                if attempt >= max_retries or not _is_transient(exc):
                    raise UpstreamServiceError(
                        f"Completion service request failed: {exc}",
                        {"attempts": attempt},
                    ) from exc
                delay = backoff * attempt
                app.logger.warning(
                    "AI client call failed (attempt %s/%s): %s. Retrying in %.1fs",
                    attempt,
                    max_retries,
                    exc,
                    delay,
                    extra={"attempt": attempt},
                )
                time.sleep(delay)
            except ValueError as exc:
                raise UpstreamServiceError("Completion service returned a non-JSON body") from exc
            finally:
                COMPLETION_LATENCY.observe(time.perf_counter() - started)

    def complete(self, prompt: str, model: str | None = None) -> str:
        """Send one prompt and return the text of the first choice."""

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        raw = self.chat(messages, model=model)
        try:
            content = raw["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise UpstreamServiceError("Completion response missing message content") from exc
        if not isinstance(content, str):
            raise UpstreamServiceError("Completion response content is not text")
        return content


def get_ai_client() -> AIClient:
    app = current_app
    client = app.extensions.get("ai_client")
    if client is None:
        client = AIClient(
            api_key=app.config.get("OPENAI_API_KEY", ""),
            api_base=app.config.get("AI_API_BASE", "https://api.openai.com/v1"),
            default_model=app.config.get("AI_READING_MODEL", "gpt-4o-mini"),
        )
        app.extensions["ai_client"] = client
    return client
