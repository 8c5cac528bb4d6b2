"""Forecast interface: routes, schemas and dependency wiring for the engine."""
