"""
Pydantic schema definitions for API payloads and stored records.

Each domain (service requests, assets, sessions) defines its own
Pydantic models.  Record models double as the decoded form of stored
documents.
"""
