"""Remote document store: HTTP client plus the caching write coalescer."""
from __future__ import annotations

from demoday_kv.remote.client import GistClient
from demoday_kv.remote.coalescer import DELETED, WriteCoalescer

__all__ = ["DELETED", "GistClient", "WriteCoalescer"]
