"""
Shared module package.

Contains cross-cutting concerns used by the interface layer:
- Error handling and mapping
- Rate limiting
- Logging configuration
"""
