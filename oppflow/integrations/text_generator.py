"""Text generation adapter for proposal content."""

from __future__ import annotations

import logging
from time import perf_counter

import requests

from oppflow.core.config import Config, get_config
from oppflow.core.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a professional proposal writer assistant."


class TextGenerator:
    """OpenAI-compatible chat completion client. One attempt per call."""

    def __init__(self, config: Config | None = None, session: requests.Session | None = None) -> None:
        self.config = config or get_config()
        self.http = session or requests.Session()

    def generate(self, prompt: str) -> str:
        if not self.config.TEXT_GENERATOR_API_KEY:
            raise UpstreamUnavailableError("Text generator is not configured.")

        payload = {
            "model": self.config.TEXT_GENERATOR_MODEL,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        }
        started = perf_counter()
        try:
            response = self.http.post(
                self.config.TEXT_GENERATOR_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.config.TEXT_GENERATOR_API_KEY}"},
                timeout=(5, self.config.TEXT_GENERATOR_TIMEOUT_SECONDS),
            )
            response.raise_for_status()
            body = response.json()
            text = body["choices"][0]["message"]["content"]
        except (requests.exceptions.RequestException, ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning(
                "text_generator.call.failed",
                extra={"event": "text_generator.call.failed", "error": str(exc)},
            )
            raise UpstreamUnavailableError("Text generator call failed.") from exc

        logger.info(
            "text_generator.call.succeeded",
            extra={
                "event": "text_generator.call.succeeded",
                "latency_ms": int((perf_counter() - started) * 1000),
            },
        )
        return str(text or "")
