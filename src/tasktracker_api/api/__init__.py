"""
tasktracker_api.api

HTTP API package (FastAPI).

Responsibilities:
- App factory, dependency wiring, response envelope and exception mapping.
- Routers grouped by resource under `/api/v1`.
"""

# Package marker.
