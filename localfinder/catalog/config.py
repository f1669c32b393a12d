from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data" / "processed"


@dataclass(frozen=True)
class CatalogConfig:
    data_dir: Path = field(
        default_factory=lambda: Path(os.getenv("CATALOG_DATA_DIR", str(_DEFAULT_DATA_DIR)))
    )
    offerings_filename: str = "offerings.csv"
    embeddings_filename: str = "offering_embeddings.npy"
    placeholder_image: str = "/verified-and-reviewed-logo.png"

    @property
    def offerings_path(self) -> Path:
        return self.data_dir / self.offerings_filename

    @property
    def embeddings_path(self) -> Path:
        return self.data_dir / self.embeddings_filename


DEFAULT_CATALOG_CONFIG = CatalogConfig()
