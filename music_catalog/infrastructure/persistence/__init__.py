"""Persistence layer: database models, repositories and unit of work."""
