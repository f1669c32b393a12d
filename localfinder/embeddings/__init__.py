"""
Embeddings layer for semantic search.

Responsibilities:
- Load a lightweight sentence-transformer model.
- Precompute embeddings for all catalog offerings (offline).
- Encode search queries and discovered-place descriptions at request time.
"""
