import asyncio
import hashlib
import json
import logging
import os
import threading
from collections import OrderedDict
from typing import Any, Dict, Optional, Tuple

import httpx
from openai import OpenAI

from leadfunnel import monitoring


MODELS = {
    "fast": os.getenv("OPENAI_MODEL_FAST", "gpt-4o-mini"),
    "reasoning": os.getenv("OPENAI_MODEL_REASONING", "gpt-4o"),
    "local": os.getenv("LOCAL_LLM_MODEL", "mistral"),
}


logger = logging.getLogger("llm.router")


class LLMUnavailable(RuntimeError):
    """Raised when no model backend is configured or the selected one fails."""


class LLMRouter:
    """Selects a model for a prompt, executes it and caches idempotent responses."""

    def __init__(self, *, cache_size: int = 128) -> None:
        self.cache_size = cache_size
        self._cache: "OrderedDict[str, Tuple[str, Dict[str, Any]]]" = OrderedDict()
        self._cache_lock = threading.Lock()
        self._openai_client = self._init_openai()

    @staticmethod
    def _init_openai() -> Optional[OpenAI]:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            return None
        try:
            return OpenAI(api_key=api_key)
        except Exception as exc:  # pragma: no cover
            monitoring.capture_exception(exc)
            return None

    @staticmethod
    def _local_url() -> Optional[str]:
        return os.getenv("LOCAL_LLM_URL")

    def is_configured(self) -> bool:
        return self._openai_client is not None or bool(self._local_url())

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()

    def _cache_key(self, prompt: str, context: Optional[Dict[str, Any]]) -> str:
        payload = {
            "prompt": prompt,
            "context": context or {},
        }
        encoded = json.dumps(payload, sort_keys=True, ensure_ascii=True, default=str).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()

    def _lookup_cache(self, key: str) -> Optional[Tuple[str, Dict[str, Any]]]:
        with self._cache_lock:
            value = self._cache.get(key)
            if value is not None:
                self._cache.move_to_end(key)
            return value

    def _store_cache(self, key: str, response: str, metadata: Dict[str, Any]) -> None:
        with self._cache_lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            self._cache[key] = (response, metadata)
            while len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)

    def _select_model(self, context: Optional[Dict[str, Any]]) -> str:
        if self._openai_client is None:
            return MODELS["local"]
        tier = (context or {}).get("tier", "fast")
        return MODELS.get(tier, MODELS["fast"])

    async def complete(self, prompt: str, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Route the prompt to a configured model and return its text output.

        ``context`` may carry ``system_prompt``, ``temperature``, ``tier``
        ("fast" or "reasoning") and ``cache`` (defaults to True). Returns a
        payload with the model name, the output text and whether the cache
        was hit. Raises ``LLMUnavailable`` when no backend can answer.
        """
        context = context or {}
        use_cache = context.get("cache", True)
        cache_key = self._cache_key(prompt, context)
        if use_cache:
            cached = self._lookup_cache(cache_key)
            if cached:
                response, metadata = cached
                return {"model": metadata.get("model"), "output": response, "cached": True}

        if not self.is_configured():
            raise LLMUnavailable("No LLM backend configured (set OPENAI_API_KEY or LOCAL_LLM_URL)")

        model = self._select_model(context)
        try:
            if model == MODELS["local"] and self._openai_client is None:
                result_text = await self._invoke_local_model(prompt, context)
            else:
                result_text = await self._invoke_openai_model(model, prompt, context)
        except Exception as exc:
            monitoring.capture_exception(exc)
            logger.error("LLM execution failed", extra={"llm": {"model": model, "error": str(exc)}})
            raise LLMUnavailable(f"LLM request failed: {exc}") from exc

        if not result_text:
            raise LLMUnavailable("LLM returned an empty response")

        metadata = {"model": model}
        if use_cache:
            self._store_cache(cache_key, result_text, metadata)
        return {"model": model, "output": result_text, "cached": False}

    async def _invoke_openai_model(self, model: str, prompt: str, context: Dict[str, Any]) -> str:
        client = self._openai_client
        if not client:
            raise RuntimeError("OPENAI_API_KEY not configured")

        kwargs: Dict[str, Any] = {"model": model, "input": prompt}
        system_prompt = context.get("system_prompt")
        if system_prompt:
            kwargs["instructions"] = system_prompt.strip()
        if context.get("temperature") is not None:
            kwargs["temperature"] = context["temperature"]

        response = await asyncio.to_thread(client.responses.create, **kwargs)
        return response.output_text.strip()

    async def _invoke_local_model(self, prompt: str, context: Dict[str, Any]) -> str:
        base_url = self._local_url() or "http://localhost:11434/api/generate"
        system_prompt = context.get("system_prompt")
        payload: Dict[str, Any] = {
            "model": MODELS["local"],
            "prompt": prompt,
            "stream": False,
        }
        if system_prompt:
            payload["system"] = system_prompt
        if context.get("temperature") is not None:
            payload["options"] = {"temperature": context["temperature"]}

        async with httpx.AsyncClient(timeout=float(os.getenv("LLM_ROUTER_TIMEOUT", "30"))) as client:
            response = await client.post(base_url, json=payload)
            response.raise_for_status()
            data = response.json()

        for key in ("output", "response", "text"):
            if key in data:
                return str(data[key]).strip()
        return json.dumps(data, ensure_ascii=False)


router = LLMRouter()
