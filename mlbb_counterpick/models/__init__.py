"""
Domain models (pydantic v2).

Submodules:
  entity    — Hero / Item catalog records and DamageType
  counters  — counters knowledge base (read-only matchup scores)
  meta      — RunMetadata audit record for pipeline stages
"""
