"""
tasktracker_api.services

Service layer (business rules + transaction boundaries).

Responsibilities:
- Enforce ownership and domain rules on top of repositories.
- Commit once per public operation; helpers shared between services only flush.
"""

# Package marker.
