"""Narrator connection settings, read from the environment (.env supported).

Variables:
  LLM_FORMAT        "gemini" (default) or "openai"
  LLM_PROVIDER_URL  base URL; defaults to the public Gemini API
  LLM_API_KEY       falls back to GEMINI_API_KEY, then API_KEY
  LLM_MODEL         model identifier (default gemini-flash-lite-latest)
  LLM_TIMEOUT       seconds per exchange (default 120)
  LLM_DEMO          "1"/"true" to use the offline demo narrator
"""

import os
from collections.abc import Mapping

from pydantic import BaseModel

from quest_narrator.llm import DEFAULT_MODEL, GEMINI_URL, LLM, HttpLLM, ProviderFormat

_TRUE = {"1", "true", "yes", "on"}


class LLMConfig(BaseModel):
    provider_format: ProviderFormat = "gemini"
    provider_url: str = GEMINI_URL
    api_key: str = ""
    model: str = DEFAULT_MODEL
    timeout: float = 120.0
    demo: bool = False


def load_llm_config(env: Mapping[str, str] | None = None) -> LLMConfig:
    """Build an LLMConfig from ``env`` (defaults to os.environ)."""
    env = os.environ if env is None else env
    fields: dict = {}
    if env.get("LLM_FORMAT"):
        fields["provider_format"] = env["LLM_FORMAT"]
    if env.get("LLM_PROVIDER_URL"):
        fields["provider_url"] = env["LLM_PROVIDER_URL"]
    api_key = env.get("LLM_API_KEY") or env.get("GEMINI_API_KEY") or env.get("API_KEY")
    if api_key:
        fields["api_key"] = api_key
    if env.get("LLM_MODEL"):
        fields["model"] = env["LLM_MODEL"]
    if env.get("LLM_TIMEOUT"):
        fields["timeout"] = env["LLM_TIMEOUT"]
    fields["demo"] = env.get("LLM_DEMO", "").lower() in _TRUE
    return LLMConfig(**fields)


def build_llm(config: LLMConfig) -> LLM:
    if config.demo:
        from backend.demo import DemoNarrator
        return DemoNarrator()
    return HttpLLM(
        provider_url=config.provider_url,
        api_key=config.api_key,
        provider_format=config.provider_format,
        model=config.model,
        timeout=config.timeout,
    )
