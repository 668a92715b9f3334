"""Concrete adapters for the interfaces in :mod:`mediaquery.interfaces`."""
