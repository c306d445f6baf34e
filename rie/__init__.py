"""
Record Import Engine.

Loads semi-structured files into a schemaless record store, resolving
textual references into record links along the way.

    from rie.ingestion import ImportEngine
    from rie.store import MemoryStore

    engine = ImportEngine(MemoryStore())
    result = engine.import_group({"name": ["Ann"], "age": ["30"]})
"""

__version__ = "0.1.0"
