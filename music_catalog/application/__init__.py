"""Application layer: use cases orchestrating domain logic and persistence."""
