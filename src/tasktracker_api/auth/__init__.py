"""
tasktracker_api.auth

Authentication/authorization package.

Responsibilities:
- Password hashing and JWT helpers.
- FastAPI auth dependencies (Principal + role hierarchy checks).
"""

# Package marker.
