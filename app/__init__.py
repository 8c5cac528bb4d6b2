"""
Quoteboard Forecast — HTTP service for the dashboard's prediction engine.

Application package root. Thin shell around the `forecast` engine:
    - core: Settings loaded from .env.
    - interfaces: FastAPI routers, Pydantic schemas, dependency wiring.
    - shared: Cross-cutting concerns (errors, rate limiting, logging).
"""
