"""
Service layer.

Each service encapsulates business logic for a domain.  Services get
their collaborators (document store, settings) through their
constructor, so API handlers and tests can build them against any
store.
"""
