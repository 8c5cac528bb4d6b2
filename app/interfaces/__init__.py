"""
Interfaces layer package.

HTTP adapters over the forecast engine: routers, Pydantic request and
response schemas, and the dependency that hands routes the shared
ForecastService. Routes translate requests; they never compute.
"""
