"""
Unified search pipeline.

Responsibilities:
- Validate the incoming query and embed it once per request.
- Retrieve catalog offerings by vector similarity and select the relevant ones.
- Fill the remaining slots with businesses discovered through the places provider.
- Merge, enrich, radius-filter and rank the combined candidates.
"""
