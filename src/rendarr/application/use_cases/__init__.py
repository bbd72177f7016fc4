from .addon_service import AddonService
from .catalog_builder import CatalogBuilder, NamespaceLocks
from .identity_lookup import IdentityLookup

__all__ = ["AddonService", "CatalogBuilder", "IdentityLookup", "NamespaceLocks"]
