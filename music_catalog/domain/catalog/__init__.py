"""Catalog algorithms: association reconciliation, list composition, pickers."""
