"""Composition root for wiring dependencies.

This package centralizes infrastructure-aware wiring so the API and
application layers depend on ports without creating engines or clients.
"""
