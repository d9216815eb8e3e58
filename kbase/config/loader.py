"""YAML configuration loader with environment variable overrides.

Configuration is layered (later layers override earlier):

  1. ``config/config.yaml`` -- static defaults checked into a deployment
  2. ``.env`` file          -- local developer overrides
  3. Environment vars       -- set at deploy time

``load_config()`` reads the YAML file first and deep-merges the
Settings-derived values on top.
"""

from pathlib import Path

import yaml

from kbase.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file is
              treated as empty.
        settings: Settings instance to merge; a fresh one is built if omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "vector_store": {
            "provider": settings.vector_db_provider,
            "persist_dir": settings.chromadb_persist_dir,
        },
        "storage": {
            "blob_dir": settings.blob_storage_dir,
            "public_base_url": settings.blob_public_base_url,
            "metadata_db_path": settings.metadata_db_path,
        },
        "embedding": {
            "available_providers": settings.get_available_embedding_providers(),
            "collection_models": dict(settings.collection_embedding_models),
        },
        "ingestion": {
            "chunk_size": settings.default_chunk_size,
            "chunk_overlap": settings.default_chunk_overlap,
            "split_by": settings.default_split_by,
            "upload_concurrency": settings.upload_concurrency,
            "chunk_concurrency": settings.chunk_concurrency,
            "external_call_timeout": settings.external_call_timeout,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
