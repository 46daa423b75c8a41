"""
apps.tenants.services package.
"""
from .tenant_service import (  # noqa: F401
    create_tenant,
    get_tenant,
    list_tenants,
    update_tenant_status,
)
