"""Domain layer: record entities and request-level services."""
