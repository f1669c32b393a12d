"""
Offline script to precompute offering embeddings.

The output matrix is row-aligned with ``offerings.csv``; rerun this after
every catalog export.

Usage:
    python -m localfinder.embeddings.precompute
"""
from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from ..catalog.config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig
from .encoder import encode_batch

logger = logging.getLogger(__name__)

_TEXT_COLUMNS = ("title", "description", "tags", "business_name", "category")


def build_offering_text(row: pd.Series) -> str:
    parts: list[str] = []
    for column in _TEXT_COLUMNS:
        value = row.get(column)
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            continue
        if column == "tags":
            value = " ".join(t.strip() for t in str(value).split("|") if t.strip())
        parts.append(str(value))
    return " ".join(parts).strip().lower()


def run_precompute(
    catalog_config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
    embedding_config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG,
) -> np.ndarray:
    df = pd.read_csv(catalog_config.offerings_path)
    texts = df.apply(build_offering_text, axis=1).tolist()

    logger.info("Encoding %d offerings with %s ...", len(texts), embedding_config.model_name)
    embeddings = encode_batch(texts, embedding_config, show_progress_bar=True)

    out_path = catalog_config.embeddings_path
    out_path.parent.mkdir(parents=True, exist_ok=True)
    np.save(out_path, embeddings)
    logger.info("Saved embeddings %s to %s", embeddings.shape, out_path)
    return embeddings


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_precompute()
