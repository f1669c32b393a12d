from __future__ import annotations

import json
import logging
from typing import Any

from groq import Groq

from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

PLANNER_TOOL_NAME = "generate_search_queries"

PLANNER_PROMPT = """\
You are a search query generator for the Google Places API. Generate exactly \
{count} different search queries to find businesses that serve or offer what \
the user is looking for.

Requirements:
- Each query should be 2-4 words suitable for Google Places Text Search
- Focus on finding businesses that SERVE or OFFER the specific item or service the user wants
- If the user searches for "fried chicken", find "fried chicken restaurant", "chicken wings", "southern food"
- If the user searches for "vegan pancakes", find "vegan restaurant", "plant based breakfast", "vegan cafe"
- If the user searches for "massage", find "massage therapy", "spa services", "wellness center"
- Prioritize specific dish or service matches over general business types
- Make every query DIFFERENT so each one finds DIFFERENT kinds of businesses"""

OFFERING_NAME_PROMPT = """\
Based on the user's search for "{query}" and this business "{business}" \
(types: {types}), generate ONE plausible menu item or service name that this \
business would likely offer related to the search.

Rules:
- Return ONLY the name, nothing else
- Make it specific, e.g. "Grilled Salmon Burger" or "Deep Tissue Massage"
- Keep it under 4 words"""

_MAX_NAME_LENGTH = 50


def _planner_tool(count: int) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": PLANNER_TOOL_NAME,
            "description": "Generate Google Places search queries for businesses that serve or offer what the user wants",
            "parameters": {
                "type": "object",
                "properties": {
                    "queries": {
                        "type": "array",
                        "items": {"type": "string"},
                        "minItems": count,
                        "maxItems": count,
                    }
                },
                "required": ["queries"],
            },
        },
    }


def _parse_queries(arguments: str, count: int) -> list[str]:
    parsed = json.loads(arguments)
    queries = parsed.get("queries") if isinstance(parsed, dict) else None
    if not isinstance(queries, list):
        raise ValueError(f"expected a 'queries' list, got {type(queries).__name__}")

    phrases: list[str] = []
    seen: set[str] = set()
    for item in queries:
        if not isinstance(item, str):
            continue
        phrase = " ".join(item.split())
        if phrase and phrase.lower() not in seen:
            seen.add(phrase.lower())
            phrases.append(phrase)
    return phrases[:count]


def plan_search_phrases(
    query: str,
    count: int,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> list[str]:
    """
    Ask the LLM for ``count`` distinct short places-search phrases.

    Returns an empty list on any failure (disabled, timeout, API error,
    missing tool call, unparseable arguments).
    """
    if not config.enabled or not config.api_key or count <= 0:
        return []

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout, max_retries=0)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": PLANNER_PROMPT.format(count=count)},
                {"role": "user", "content": query},
            ],
            tools=[_planner_tool(count)],
            tool_choice={"type": "function", "function": {"name": PLANNER_TOOL_NAME}},
            temperature=config.planner_temperature,
            max_tokens=config.max_tokens,
        )

        tool_calls = response.choices[0].message.tool_calls or []
        for call in tool_calls:
            if call.function.name == PLANNER_TOOL_NAME:
                phrases = _parse_queries(call.function.arguments, count)
                logger.info("Planned %d search phrases for %r: %s", len(phrases), query, phrases)
                return phrases

        logger.warning("Query planner returned no %s tool call", PLANNER_TOOL_NAME)
        return []

    except Exception:
        logger.warning("Groq query planning failed, skipping discovery", exc_info=True)
        return []


def suggest_offering_name(
    query: str,
    business_name: str,
    types: list[str],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> str:
    """Plausible offering name for a discovered business; the query itself on failure."""
    if not config.enabled or not config.api_key:
        return query

    prompt = OFFERING_NAME_PROMPT.format(
        query=query,
        business=business_name,
        types=", ".join(types) or "business",
    )
    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout, max_retries=0)
        response = client.chat.completions.create(
            model=config.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=config.name_temperature,
            max_tokens=config.name_max_tokens,
        )
        name = (response.choices[0].message.content or "").strip().strip('"')
    except Exception:
        logger.warning("Offering name generation failed for %r", business_name, exc_info=True)
        return query

    if not name or len(name) >= _MAX_NAME_LENGTH:
        return query
    return name
