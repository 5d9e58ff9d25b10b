import logging
from typing import Any, Dict

import dashscope
import requests

from . import config

logger = logging.getLogger(__name__)


class LLMError(Exception):
    pass


def is_configured() -> bool:
    return bool(config.LLM_API_KEY)


def _dashscope_complete(prompt: str, max_tokens: int, temperature: float) -> str:
    dashscope.api_key = config.LLM_API_KEY
    try:
        response = dashscope.Generation.call(
            model=config.LLM_CHAT_MODEL or "qwen-plus",
            prompt=prompt,
            result_format="message",
            max_tokens=max_tokens,
            temperature=temperature,
        )
    except Exception as exc:
        raise LLMError(f"LLM request failed: {exc}") from exc
    if response.status_code != 200:
        raise LLMError(f"LLM request failed ({response.status_code}): {response.message}")
    try:
        content = response.output.choices[0].message.content
    except (AttributeError, IndexError, KeyError, TypeError) as exc:
        raise LLMError("LLM response had an unexpected shape") from exc
    return content or ""


def _openai_request(endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    if not config.LLM_API_BASE_URL:
        raise LLMError("LLM_API_BASE_URL is not configured.")
    headers = {
        "Authorization": f"Bearer {config.LLM_API_KEY}",
        "Content-Type": "application/json",
    }
    url = f"{config.LLM_API_BASE_URL}{endpoint}"
    try:
        response = requests.post(url, headers=headers, json=payload, timeout=config.LLM_TIMEOUT)
    except requests.RequestException as exc:
        raise LLMError(f"LLM request failed: {exc}") from exc
    if response.status_code >= 400:
        raise LLMError(f"LLM request failed ({response.status_code}): {response.text[:200]}")
    try:
        return response.json()
    except ValueError as exc:
        raise LLMError("LLM response was not valid JSON") from exc


def _openai_complete(prompt: str, max_tokens: int, temperature: float) -> str:
    payload = {
        "model": config.LLM_CHAT_MODEL or "gpt-3.5-turbo",
        "messages": [
            {"role": "system", "content": "You are a helpful assistant."},
            {"role": "user", "content": prompt},
        ],
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    data = _openai_request("/v1/chat/completions", payload)
    try:
        return data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError) as exc:
        raise LLMError("LLM response had an unexpected shape") from exc


def complete(prompt: str, max_tokens: int, temperature: float) -> str:
    """Run one completion call. No retries; failures raise :class:`LLMError`."""
    if not is_configured():
        raise LLMError("LLM_API_KEY is not configured.")
    logger.info(
        "LLM complete provider=%s model=%s max_tokens=%s",
        config.LLM_PROVIDER,
        config.LLM_CHAT_MODEL or "default",
        max_tokens,
    )
    if config.LLM_PROVIDER == "dashscope":
        return _dashscope_complete(prompt, max_tokens, temperature)
    if config.LLM_PROVIDER in ("openai", "openai_compatible"):
        return _openai_complete(prompt, max_tokens, temperature)
    raise LLMError(f"Unsupported LLM_PROVIDER: {config.LLM_PROVIDER}")
