"""
Store adapters.

    • SupabaseStore: remote store backed by a Supabase project
    • MemoryStore  : in-process store for dry runs and tests
"""

from .memory_store import MemoryDatabase, MemoryStore
from .supabase_store import SupabaseStore

__all__ = [
    "MemoryDatabase",
    "MemoryStore",
    "SupabaseStore",
]
