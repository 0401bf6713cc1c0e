"""
Core application utilities for configuration, logging, tenancy and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- TenantContext, the explicit scope every settings operation receives
- Dependency helpers (current user, tenant context, settings store)
"""
