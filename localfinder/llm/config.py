from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class LLMConfig:
    api_key: str = os.getenv("GROQ_API_KEY", "")
    model: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    # Both calls sit inside the discovery deadline, so keep them short.
    timeout: float = 5.0

    # Query planner: deterministic-ish phrases
    max_tokens: int = 200
    planner_temperature: float = 0.3

    # Offering names: a few words, some variety between businesses
    name_max_tokens: int = 20
    name_temperature: float = 0.7

    enabled: bool = os.getenv("LLM_ENABLED", "true").lower() in {"1", "true", "yes"}


DEFAULT_LLM_CONFIG = LLMConfig()
