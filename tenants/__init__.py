"""
Tenants domain package.

Public API:
- Domain models: Tenant, TenantType, DeliveryProviderMode
- Lookups: find_tenant, resolve_tenant_type, tenants_in_market
"""
from .models import (
    DeliveryProviderMode,
    Tenant,
    TenantType,
    find_tenant,
    resolve_tenant_type,
    tenants_in_market,
)

__all__ = [
    "Tenant",
    "TenantType",
    "DeliveryProviderMode",
    "find_tenant",
    "resolve_tenant_type",
    "tenants_in_market",
]
