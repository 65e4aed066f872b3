"""
Document store selection.

STORE_BACKEND=supabase uses the Supabase project configured in the
environment; anything else falls back to a process-local in-memory store.
"""

from __future__ import annotations

from functools import lru_cache

from config import get_settings
from repositories.document_store import DocumentStore
from repositories.memory_store import InMemoryDocumentStore


@lru_cache(maxsize=1)
def get_document_store() -> DocumentStore:
    settings = get_settings()
    if settings.store_backend == "supabase":
        from repositories.client import get_supabase
        from repositories.supabase_store import SupabaseDocumentStore

        return SupabaseDocumentStore(get_supabase())
    return InMemoryDocumentStore()


__all__ = ["get_document_store"]
