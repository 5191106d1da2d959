"""Adapter configuration.

``AdapterSettings`` is a frozen Pydantic model so one instance can be shared
by every component of an adapter.  Settings can be loaded from a YAML file
with ``load_settings``.

Example YAML::

    batch_delay_seconds: 1.5
    cache_ttl_seconds: 20
    document_file_name: judging.json
"""
from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

DEFAULT_API_BASE_URL = "https://api.github.com"


class AdapterSettings(BaseModel):
    """Tunables for caching, batching and the storage layout.

    Parameters
    ----------
    cache_ttl_seconds:
        How long a fetched remote document is trusted before re-fetching.
    batch_delay_seconds:
        Debounce delay between the latest pending change and the remote write.
    max_retry_delay_seconds:
        Upper bound for the backoff applied after permanent remote failures.
    request_timeout_seconds:
        Timeout applied to every HTTP request.
    api_base_url:
        Base URL of the Gist REST API.
    document_file_name:
        Name of the file inside the gist that holds the JSON document.
    document_description:
        Description given to newly created gists.
    shared_storage_key:
        Local storage key holding the shared fallback document.
    token_storage_key:
        Local storage key holding the persisted access token.
    document_id_storage_key:
        Local storage key holding the persisted remote document id.
    """

    cache_ttl_seconds: float = Field(default=30.0, gt=0)
    batch_delay_seconds: float = Field(default=2.0, gt=0)
    max_retry_delay_seconds: float = Field(default=300.0, gt=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    api_base_url: str = DEFAULT_API_BASE_URL
    document_file_name: str = "database.json"
    document_description: str = "Demo Day - Database Storage"
    shared_storage_key: str = "meetup_shared_db_v2"
    token_storage_key: str = "meetup_github_token"
    document_id_storage_key: str = "meetup_gist_id"

    model_config = {"frozen": True, "extra": "forbid"}


def load_settings(path: str | Path) -> AdapterSettings:
    """Read ``AdapterSettings`` from a YAML file.

    Parameters
    ----------
    path:
        YAML file containing a mapping of setting names to values.  An empty
        file yields the defaults.

    Returns
    -------
    AdapterSettings

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    ValueError
        If the file does not contain a mapping.
    pydantic.ValidationError
        If a setting has an invalid value or an unknown name.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {str(path)!r} must contain a mapping.")
    return AdapterSettings.model_validate(data)


__all__ = ["AdapterSettings", "DEFAULT_API_BASE_URL", "load_settings"]
