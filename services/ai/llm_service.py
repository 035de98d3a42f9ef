# services/ai/llm_service.py
from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx
from dotenv import load_dotenv

from services.errors import AdvisoryUnavailable

load_dotenv()


# ============================================================================
# PUBLIC INTERFACE
# ============================================================================

class LLMClient(Protocol):
    async def generate_text(self, *, system: str, user: str, max_tokens: int) -> str:
        """Return the raw model text."""


@dataclass
class LLMConfig:
    provider: str = "gemini"  # gemini | openai | anthropic
    temperature: float = 0.3
    timeout_s: float = 30.0
    max_output_tokens: int = 1000

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"

    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-sonnet-latest"

    @staticmethod
    def from_env() -> "LLMConfig":
        return LLMConfig(
            provider=(os.getenv("AI_PROVIDER") or "gemini").lower(),
            temperature=float(os.getenv("AI_TEMPERATURE", "0.3")),
            timeout_s=float(os.getenv("AI_TIMEOUT_S", "30")),
            max_output_tokens=int(os.getenv("AI_MAX_OUTPUT_TOKENS", "1000")),

            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_model=os.getenv("GEMINI_MODEL") or "gemini-2.5-flash",

            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL") or "gpt-4o-mini",

            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
            anthropic_model=os.getenv("ANTHROPIC_MODEL") or "claude-3-5-sonnet-latest",
        )


# ============================================================================
# PROVIDER CLIENTS
# ============================================================================

class OpenAIClient:
    def __init__(self, api_key: str, model: str, temperature: float, timeout_s: float = 30.0):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.timeout_s = timeout_s

    async def generate_text(self, *, system: str, user: str, max_tokens: int) -> str:
        async with httpx.AsyncClient(timeout=self.timeout_s) as client:
            r = await client.post(
                "https://api.openai.com/v1/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": system},
                        {"role": "user", "content": user},
                    ],
                    "temperature": self.temperature,
                    "max_tokens": max_tokens,
                    "response_format": {"type": "json_object"},
                },
            )
            r.raise_for_status()
            data = r.json()
            return data["choices"][0]["message"]["content"] or ""


class AnthropicClient:
    def __init__(self, api_key: str, model: str, temperature: float, timeout_s: float = 30.0):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.timeout_s = timeout_s

    async def generate_text(self, *, system: str, user: str, max_tokens: int) -> str:
        async with httpx.AsyncClient(timeout=self.timeout_s) as client:
            r = await client.post(
                "https://api.anthropic.com/v1/messages",
                headers={
                    "x-api-key": self.api_key,
                    "Content-Type": "application/json",
                    "anthropic-version": "2023-06-01",
                },
                json={
                    "model": self.model,
                    "max_tokens": max_tokens,
                    "system": system,
                    "messages": [{"role": "user", "content": user}],
                    "temperature": self.temperature,
                },
            )
            r.raise_for_status()
            data = r.json()
            return data["content"][0]["text"]


class GeminiClient:
    def __init__(self, api_key: str, model: str, *, temperature: float = 0.3):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature

    async def generate_text(self, *, system: str, user: str, max_tokens: int) -> str:
        # google-genai SDK call is blocking; run in thread.
        return await asyncio.to_thread(self._sync_call, system, user, max_tokens)

    def _sync_call(self, system: str, user: str, max_tokens: int) -> str:
        from google import genai
        from google.genai import types

        client = genai.Client(api_key=self.api_key)

        config = types.GenerateContentConfig(
            system_instruction=system,
            temperature=self.temperature,
            max_output_tokens=max_tokens,
        )
        resp = client.models.generate_content(
            model=self.model,
            contents=user,
            config=config,
        )
        return resp.text or ""


# ============================================================================
# LLM SERVICE
# ============================================================================

class LLMService:
    def __init__(self, cfg: Optional[LLMConfig] = None, client: Optional[LLMClient] = None):
        self.cfg = cfg or LLMConfig.from_env()
        self.client: Optional[LLMClient] = client or self._resolve_client(self.cfg)

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _resolve_client(self, cfg: LLMConfig) -> Optional[LLMClient]:
        p = (cfg.provider or "gemini").lower()

        if p == "openai":
            if not cfg.openai_api_key:
                return None
            return OpenAIClient(
                api_key=cfg.openai_api_key,
                model=cfg.openai_model,
                temperature=cfg.temperature,
                timeout_s=cfg.timeout_s,
            )

        if p == "anthropic":
            if not cfg.anthropic_api_key:
                return None
            return AnthropicClient(
                api_key=cfg.anthropic_api_key,
                model=cfg.anthropic_model,
                temperature=cfg.temperature,
                timeout_s=cfg.timeout_s,
            )

        # default: gemini
        if not cfg.gemini_api_key:
            return None
        return GeminiClient(
            api_key=cfg.gemini_api_key,
            model=cfg.gemini_model,
            temperature=cfg.temperature,
        )

    async def generate_text(self, *, system: str, user: str, max_tokens: Optional[int] = None) -> str:
        if self.client is None:
            raise AdvisoryUnavailable(f"No API key configured for AI provider '{self.cfg.provider}'")
        return await self.client.generate_text(
            system=system,
            user=user,
            max_tokens=max_tokens or self.cfg.max_output_tokens,
        )


_llm_singleton: Optional[LLMService] = None


def get_llm_service() -> LLMService:
    global _llm_singleton
    if _llm_singleton is None:
        _llm_singleton = LLMService()
    return _llm_singleton
