"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for settings and for the users and
workspaces that settings are scoped to. Scoping is always explicit in the
query (user_id, workspace_id); there is no session-level tenant filter.
"""
