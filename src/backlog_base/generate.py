from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Any, Optional

from openai import OpenAI
from pydantic import BaseModel

from .errors import GenerationError
from .model import Backlog
from .prompts import build_user_prompt, load_system_prompt
from .recovery import recover_and_parse

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4.1-2025-04-14"


class GeneratorConfig(BaseModel):
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: str = DEFAULT_MODEL
    language: str = "en"
    style: str = "standard"
    max_tokens: int = 2048
    temperature: float = 0.7
    prompt_dir: Optional[Path] = None

    @classmethod
    def from_env(cls, **overrides: Any) -> "GeneratorConfig":
        values: dict[str, Any] = {
            "api_key": os.getenv("OPENAI_API_KEY"),
            "base_url": os.getenv("OPENAI_API_BASE"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class BacklogGenerator:
    """
    Turn a free-text project specification into a validated Backlog.

    The configuration is passed in explicitly; a ready-made client can be
    injected (anything exposing ``chat.completions.create``), otherwise an
    ``openai.OpenAI`` client is built from the config on first use.
    """

    def __init__(self, config: GeneratorConfig, client: Any = None):
        self.config = config
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.config.api_key:
                raise GenerationError("OPENAI_API_KEY environment variable not set")
            self._client = OpenAI(api_key=self.config.api_key, base_url=self.config.base_url)
        return self._client

    def system_prompt(self) -> str:
        return load_system_prompt(self.config.language, self.config.prompt_dir)

    def call_llm(self, system_prompt: str, user_prompt: str) -> str:
        client = self._get_client()
        t0 = time.perf_counter()
        try:
            response = client.chat.completions.create(
                model=self.config.model,
                messages=[{"role": "user", "content": f"{system_prompt}\n\n{user_prompt}"}],
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
            )
        except Exception as e:  # noqa: BLE001
            raise GenerationError(f"LLM API error: {e}") from e

        content = (response.choices[0].message.content or "").strip()
        logger.info(
            "LLM call %s -> %.2fs, %d chars",
            self.config.model,
            time.perf_counter() - t0,
            len(content),
        )
        return content

    def generate(self, spec: str) -> Backlog:
        raw = self.call_llm(self.system_prompt(), build_user_prompt(spec, self.config.style))
        return recover_and_parse(raw)
