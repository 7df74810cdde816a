"""Registry implementations for shellfleet."""

from shellfleet.registry.inventory import (
    Inventory,
    InventoryError,
    load_inventory,
    parse_inventory,
)
from shellfleet.registry.memory import (
    InMemoryAccountRegistry,
    InMemoryAuditLog,
    InMemoryHostRegistry,
    InMemorySettingsStore,
)

__all__ = [
    "InMemoryAccountRegistry",
    "InMemoryAuditLog",
    "InMemoryHostRegistry",
    "InMemorySettingsStore",
    "Inventory",
    "InventoryError",
    "load_inventory",
    "parse_inventory",
]
