import json
import logging
import re
from typing import Any, List

from . import config, llm

logger = logging.getLogger(__name__)

SUMMARY_FALLBACK = "Unable to generate a summary."
MAX_FALLBACK_TAGS = 5

JSON_ARRAY_PATTERN = re.compile(r"\[.*?\]", re.S)
TAG_SPLIT_PATTERN = re.compile(r"[,\n]")
QUOTE_EDGE_PATTERN = re.compile(r"^[\"'`]|[\"'`]$")


def build_summary_prompt(title: str, content: str) -> str:
    return (
        "Summarize the following memo concisely and clearly. "
        "Condense only the key points into 2-3 sentences.\n\n"
        f"Title: {title}\n\n"
        f"Content:\n{content}"
    )


def build_tags_prompt(title: str, content: str) -> str:
    return (
        "Analyze the following memo and generate fitting tags. "
        "Tags should be words or short phrases that capture the memo's main topics.\n\n"
        f"Title: {title}\n\n"
        f"Content:\n{content}\n\n"
        "Generate 3-5 tags for this memo and return them as a JSON array. "
        'Example: ["tag1", "tag2", "tag3"]\n'
        "Each tag should be short and clear."
    )


def _split_tags(text: str) -> List[str]:
    parts = []
    for part in TAG_SPLIT_PATTERN.split(text):
        cleaned = QUOTE_EDGE_PATTERN.sub("", part.strip())
        if cleaned:
            parts.append(cleaned)
    return parts[:MAX_FALLBACK_TAGS]


def parse_tags(text: str) -> List[str]:
    """Pull a tag list out of a loosely structured model response.

    A JSON array anywhere in the text wins; otherwise the text is split on
    commas and newlines.
    """
    text = text or ""
    parsed: Any = None
    match = JSON_ARRAY_PATTERN.search(text)
    if match:
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            logger.info("Tag response array unparseable, splitting instead")
    if parsed is None:
        parsed = _split_tags(text)
    if not isinstance(parsed, list) or not parsed:
        return []
    return [str(tag) for tag in parsed]


def generate_summary(title: str, content: str) -> str:
    text = llm.complete(
        build_summary_prompt(title, content),
        max_tokens=config.SUMMARY_MAX_TOKENS,
        temperature=config.LLM_TEMPERATURE,
    )
    return text or SUMMARY_FALLBACK


def generate_tags(title: str, content: str) -> List[str]:
    text = llm.complete(
        build_tags_prompt(title, content),
        max_tokens=config.TAGS_MAX_TOKENS,
        temperature=config.LLM_TEMPERATURE,
    )
    return parse_tags(text)
