"""
Offering catalog.

Responsibilities:
- Load the platform's offerings (joined with their businesses) and their precomputed embeddings.
- Answer vector similarity searches with an optional distance filter.
- Look up full offering records by id for result enrichment.
"""
