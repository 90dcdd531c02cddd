"""Component registry entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from opencli_spec_builder.schema_management.schema_models import SchemaRef
from opencli_spec_builder.type_descriptors.descriptor_models import TypeIdentity


class EntryState(str, Enum):
    """Lifecycle state of one component name."""

    RESERVED = "reserved"
    FINALIZED = "finalized"


class NamingStrategy(str, Enum):
    """How a type identity is turned into a component base name."""

    SHORT = "short"
    QUALIFIED = "qualified"


@dataclass(frozen=True)
class RegistryEntry:
    """State of one component name."""

    name: str
    state: EntryState
    identity: TypeIdentity | None = None
    schema: SchemaRef | None = None
    fingerprint: str | None = None


@dataclass(frozen=True)
class ReservationToken:
    """Proof of a reservation, handed back to finalize or release the name."""

    name: str
    identity: TypeIdentity
    verifying: bool = False
