"""Component registry exports."""

from .component_registry import ComponentRegistry, ComponentRegistryError
from .registry_entries import EntryState, NamingStrategy, RegistryEntry, ReservationToken

__all__ = [
    "ComponentRegistry",
    "ComponentRegistryError",
    "EntryState",
    "NamingStrategy",
    "RegistryEntry",
    "ReservationToken",
]
