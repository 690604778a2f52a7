"""
Portfolio content API.

Serves the public portfolio pages (projects, skills, about profile) and the
admin content-management endpoints, backed either by MongoDB or by the local
demo store.
"""

__version__ = "1.0.0"
