"""Domain layer: models, errors and events for segment voting."""
