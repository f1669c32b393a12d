from __future__ import annotations

import logging

import numpy as np
from sentence_transformers import SentenceTransformer

from ..search.errors import EmbeddingUnavailable
from .config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig

logger = logging.getLogger(__name__)

_models: dict[str, SentenceTransformer] = {}


def _get_model(config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> SentenceTransformer:
    model = _models.get(config.model_name)
    if model is None:
        logger.info("Loading sentence-transformer model %s", config.model_name)
        model = SentenceTransformer(config.model_name)
        _models[config.model_name] = model
    return model


def encode_text(text: str, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> np.ndarray:
    """Encode a single string into a 1-D embedding vector."""
    return _get_model(config).encode(text, show_progress_bar=False)


def encode_batch(
    texts: list[str],
    config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG,
    show_progress_bar: bool = False,
) -> np.ndarray:
    """Encode a list of strings into a 2-D array of shape (N, dim)."""
    if not texts:
        return np.zeros((0, config.dimension))
    return _get_model(config).encode(texts, show_progress_bar=show_progress_bar, batch_size=256)


class SentenceEncoder:
    """Embedding service used by the search pipeline.

    Any failure of the underlying model is reported as ``EmbeddingUnavailable``.
    """

    def __init__(self, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG):
        self.config = config

    def encode(self, text: str) -> np.ndarray:
        try:
            return np.asarray(encode_text(text, self.config), dtype=float)
        except Exception as exc:
            raise EmbeddingUnavailable(f"Could not embed query: {exc}") from exc

    def encode_batch(self, texts: list[str]) -> np.ndarray:
        try:
            return np.asarray(encode_batch(texts, self.config), dtype=float)
        except Exception as exc:
            raise EmbeddingUnavailable(f"Could not embed {len(texts)} texts: {exc}") from exc
