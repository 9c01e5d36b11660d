"""
Ingestion layer — external source access and catalog persistence.

Submodules:
  pool           — BoundedWorkPool, fixed-concurrency async scheduler
  paginator      — PaginatedFetcher, continuation-token pagination
  wiki_client    — Fandom MediaWiki API client (httpx)
  catalog_store  — catalog / counters JSON load and atomic save
"""
