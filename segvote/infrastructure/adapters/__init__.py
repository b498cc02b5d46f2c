"""Infrastructure adapters: persistence, cache and external services."""
