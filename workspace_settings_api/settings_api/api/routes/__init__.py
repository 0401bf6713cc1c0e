"""
API route modules for scoped settings.

This package contains subrouters for:
- Settings: the settings page, per-group update endpoints and integration checks

Routers are included from settings_api.api.main (under the /api/v1 prefix).
"""
