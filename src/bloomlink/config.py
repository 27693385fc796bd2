"""Pipeline settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables prefixed with BL_."""

    # Bloom filter encoding
    filter_size: int = 256
    hash_count: int = 4
    normalize_attributes: bool = False

    # Clustering
    cluster_count: int = 3
    kmeans_iterations: int = 10
    cluster_seed: int = 42

    # MinHash / LSH
    minhash_size: int = 100
    minhash_seed: int = 1
    crv_sample_size: int | None = 50
    band_width: int = 10
    bucket_quorum: int | None = None

    # Matching
    similarity_threshold: float = 0.9
    match_on: Literal["attribute", "structural"] = "attribute"

    max_workers: int = 1

    model_config = {"env_file": ".env", "env_prefix": "BL_"}


def get_settings() -> Settings:
    """Return a Settings instance built from the current environment."""
    return Settings()
