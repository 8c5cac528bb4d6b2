"""
Shared error handling package.

Centralizes error-to-HTTP mapping so that forecast engine errors
are consistently translated into API responses.
"""
