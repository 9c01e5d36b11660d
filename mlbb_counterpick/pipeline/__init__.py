"""
Pipeline stages operating on whole catalog files.

Stages:
  acquire  — build a raw catalog from wiki category members
  prune    — drop non-playable records from the heroes catalog
  enrich   — classify every entity's lifecycle status
"""
