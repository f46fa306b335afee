"""
tasktracker_api.db.repositories

Repository layer.

Responsibilities:
- Encapsulate DB queries and updates per aggregate/entity.
- Keep services focused on business rules and transaction boundaries.
"""

# Package marker.
