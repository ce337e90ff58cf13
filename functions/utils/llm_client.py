# functions/utils/llm_client.py
from __future__ import annotations

import json
import os
import time
from functools import lru_cache
from typing import Any, Callable, Dict, Optional, cast

import google.generativeai as genai
import structlog
from google.generativeai.types import GenerationConfig, RequestOptions

from cv_templates.sample_data import SAMPLE_CV
from functions.errors import CollaboratorError
from functions.utils.common import ROOT, get_section, load_yaml_file

logger = structlog.get_logger().bind(module="llm_client")

LLMClient = Callable[..., "LLMText"]


# ---------------------------------------------------------------------------
# String subclass that can carry usage metadata
# ---------------------------------------------------------------------------
class LLMText(str):
    """
    String that also exposes:
      - .usage: {prompt_tokens, completion_tokens, total_tokens}
      - .model: model name that produced the text
    """

    def __new__(
        cls,
        text: str,
        usage: Optional[Dict[str, Any]] = None,
        model: str = "",
    ) -> "LLMText":
        obj = cast(LLMText, str.__new__(cls, text or ""))
        obj.usage = usage or {}
        obj.model = model
        return obj


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def _load_credentials() -> Dict[str, Any]:
    path = ROOT / "parameters" / "credentials.yaml"
    # optional file; the key usually comes from the environment
    if not path.exists():
        return {}
    return load_yaml_file(path)


def get_api_key() -> Optional[str]:
    """GOOGLE_API_KEY from the environment, else from parameters/credentials.yaml."""
    api_key = os.environ.get("GOOGLE_API_KEY")
    if api_key:
        return api_key
    creds = _load_credentials()
    api_key = creds.get("GOOGLE_API_KEY") or creds.get("google_api_key")
    return str(api_key) if api_key else None


def _safe_get_text(resp: Any) -> str:
    """resp.text raises when the candidate was blocked; treat that as empty."""
    try:
        txt = getattr(resp, "text", None)
    except ValueError:
        logger.warning("gemini_text_unavailable", finish_reason=str(getattr(resp, "finish_reason", None)))
        return ""
    return str(txt or "").strip()


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------
def call_llm(
    prompt: str,
    *,
    system_prompt: Optional[str] = None,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_output_tokens: Optional[int] = None,
    timeout: Optional[int] = None,
    max_retries: Optional[int] = None,
    response_mime_type: str = "application/json",
) -> LLMText:
    """Call Gemini through google-generativeai and return the generated text."""
    gen_cfg = get_section("generation")

    model = model or gen_cfg.get("model_name", "gemini-2.5-flash")
    temperature = float(temperature if temperature is not None else 0.7)
    max_output_tokens = int(max_output_tokens or 4096)
    timeout = int(timeout or gen_cfg.get("timeout_seconds", 60))
    max_retries = max(1, int(max_retries or gen_cfg.get("max_retries", 1)))

    api_key = get_api_key()
    if not api_key:
        logger.error("google_api_key_missing")
        raise CollaboratorError(
            "Gemini API key not configured. Set GOOGLE_API_KEY or add it to parameters/credentials.yaml."
        )

    genai.configure(api_key=api_key)
    gen_model = genai.GenerativeModel(model, system_instruction=system_prompt)
    generation_config = GenerationConfig(
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        response_mime_type=response_mime_type,
    )

    logger.info(
        "llm_real_call_start",
        model=model,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        timeout=timeout,
        max_retries=max_retries,
    )

    last_error: Exception | None = None
    for attempt in range(1, max_retries + 1):
        try:
            resp = gen_model.generate_content(
                prompt,
                generation_config=generation_config,
                request_options=RequestOptions(timeout=timeout),
            )
        except Exception as e:
            last_error = e
            logger.exception("llm_real_call_failed", error=str(e), attempt=attempt, model=model)
            if attempt < max_retries:
                time.sleep(1.5 * attempt)
            continue

        text = _safe_get_text(resp)
        um = getattr(resp, "usage_metadata", None)
        usage = {
            "prompt_tokens": getattr(um, "prompt_token_count", None) if um else None,
            "completion_tokens": getattr(um, "candidates_token_count", None) if um else None,
            "total_tokens": getattr(um, "total_token_count", None) if um else None,
        }
        logger.info(
            "llm_real_call_success",
            model=model,
            result_preview=text[:200],
            prompt_tokens=usage["prompt_tokens"],
            output_tokens=usage["completion_tokens"],
        )
        if not text:
            raise CollaboratorError("The language model returned an empty answer")
        return LLMText(text, usage=usage, model=model)

    raise CollaboratorError(f"Gemini API error: {last_error}") from last_error


def stub_llm_client(prompt: str, **kwargs: Any) -> LLMText:
    """Offline client: always answers with the sample CV as JSON."""
    logger.info("llm_stub_call", prompt_preview=prompt.replace("\n", " ")[:120])
    return LLMText(json.dumps(SAMPLE_CV), model="stub")


def select_llm_client() -> LLMClient:
    """Stub when parameters.yaml sets generation.use_stub, the Gemini client otherwise."""
    if get_section("generation").get("use_stub", False):
        logger.info("using_stub_llm_client")
        return stub_llm_client
    return call_llm


__all__ = [
    "LLMText",
    "LLMClient",
    "get_api_key",
    "call_llm",
    "stub_llm_client",
    "select_llm_client",
]
