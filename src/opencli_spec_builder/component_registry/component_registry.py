"""Component registry service.

Component names move through a two-phase protocol. ``reserve`` claims a name
before the owning type's body is derived; a nested request for the same
identity while the claim is open returns a plain ``Reference`` and is how
recursive types terminate. ``finalize`` stores the body together with its
structural fingerprint; the same name may be finalized again only with an
identical body.

A name already finalized by a *different* identity (two types sharing a base
name under the short naming strategy) is handed out for verification: the
caller derives its own body and ``finalize`` accepts it only when the
fingerprints agree.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType

from opencli_spec_builder.derivation_failures import NameCollision
from opencli_spec_builder.schema_management.schema_fingerprint import schema_fingerprint
from opencli_spec_builder.schema_management.schema_models import Reference, SchemaRef
from opencli_spec_builder.type_descriptors.descriptor_models import TypeIdentity

from .registry_entries import EntryState, NamingStrategy, RegistryEntry, ReservationToken

_LOGGER = logging.getLogger("opencli_spec_builder.registry")
_LOGGER.addHandler(logging.NullHandler())


class ComponentRegistryError(Exception):
    """Raised when the registry is used outside its protocol."""


class ComponentRegistry:
    """Name table of component schemas owned by one document build."""

    def __init__(self, naming: NamingStrategy = NamingStrategy.SHORT) -> None:
        self._naming = NamingStrategy(naming)
        self._lock = threading.RLock()
        self._entries: dict[str, RegistryEntry] = {}
        self._verifying: dict[str, TypeIdentity] = {}
        self._equivalent: set[tuple[str, TypeIdentity]] = set()
        self._closed = False

    @property
    def naming(self) -> NamingStrategy:
        """Naming strategy used by name_for."""
        return self._naming

    @property
    def closed(self) -> bool:
        """True once the owning document has been built."""
        return self._closed

    def name_for(self, identity: TypeIdentity) -> str:
        """Return the component name of identity.

        Generic arguments are rendered with their own component names, so
        ``Page<User>`` and ``Page<Order>`` never share a name. Qualified names
        keep the path exactly as written; ``a::B`` and ``a.B`` stay distinct.
        """
        if self._naming is NamingStrategy.QUALIFIED:
            base = identity.qualified_name
        else:
            base = identity.base_name
        if not identity.generic_arguments:
            return base
        arguments = ",".join(self.name_for(argument) for argument in identity.generic_arguments)
        return f"{base}<{arguments}>"

    def reserve(self, name: str, identity: TypeIdentity) -> ReservationToken | Reference:
        """Claim name for identity, or short-circuit to a Reference.

        Returns:
          A ReservationToken when the caller must derive the body, or a
          Reference when the name is already owned by identity (finalized, or
          reserved by an ancestor in the current derivation path).

        Raises:
          NameCollision: when another identity holds an open reservation.
        """
        with self._lock:
            self._ensure_open()
            entry = self._entries.get(name)
            if entry is None:
                self._entries[name] = RegistryEntry(name, EntryState.RESERVED, identity)
                _LOGGER.debug("Reserved component %s for %s", name, identity)
                return ReservationToken(name, identity)
            if entry.identity == identity or (name, identity) in self._equivalent:
                if entry.state is EntryState.RESERVED:
                    _LOGGER.debug("Cycle on %s short-circuited to a reference", name)
                return Reference(name)
            if entry.state is EntryState.RESERVED:
                raise NameCollision(name, entry.identity, identity)

            pending = self._verifying.get(name)
            if pending == identity:
                return Reference(name)
            if pending is not None:
                raise NameCollision(name, pending, identity)
            self._verifying[name] = identity
            _LOGGER.debug("Verifying %s against finalized component %s", identity, name)
            return ReservationToken(name, identity, verifying=True)

    def is_in_progress(self, name: str) -> bool:
        """Return True while name is reserved and not yet finalized."""
        with self._lock:
            entry = self._entries.get(name)
            return (entry is not None and entry.state is EntryState.RESERVED) or (
                name in self._verifying
            )

    def finalize(
        self, name: str, schema: SchemaRef, identity: TypeIdentity | None = None
    ) -> None:
        """Store the body of name.

        Finalizing an already finalized name with an identical body is a no-op;
        a differing body raises NameCollision. A name that was never reserved
        may be finalized directly.
        """
        fingerprint = schema_fingerprint(schema)
        with self._lock:
            self._ensure_open()
            entry = self._entries.get(name)
            if entry is not None and entry.state is EntryState.FINALIZED:
                if entry.fingerprint != fingerprint:
                    raise NameCollision(name, entry.identity, identity or entry.identity)
                if identity is not None and identity != entry.identity:
                    self._equivalent.add((name, identity))
                    _LOGGER.debug("Deduplicated %s into component %s", identity, name)
                if self._verifying.get(name) == identity:
                    del self._verifying[name]
                return
            if entry is not None and identity is not None and entry.identity != identity:
                raise NameCollision(name, entry.identity, identity)
            owner = entry.identity if entry is not None else identity
            self._entries[name] = RegistryEntry(
                name, EntryState.FINALIZED, owner, schema, fingerprint
            )
            _LOGGER.debug("Finalized component %s", name)

    def release(self, token: ReservationToken) -> None:
        """Drop the reservation behind token after a failed derivation."""
        with self._lock:
            if token.verifying:
                if self._verifying.get(token.name) == token.identity:
                    del self._verifying[token.name]
                return
            entry = self._entries.get(token.name)
            if (
                entry is not None
                and entry.state is EntryState.RESERVED
                and entry.identity == token.identity
            ):
                del self._entries[token.name]
                _LOGGER.debug("Released reservation of %s", token.name)

    def open_reservations(self) -> tuple[str, ...]:
        """Names that are reserved but not finalized, sorted."""
        with self._lock:
            names = {
                name
                for name, entry in self._entries.items()
                if entry.state is EntryState.RESERVED
            }
            names.update(self._verifying)
            return tuple(sorted(names))

    def resolves(self, name: str) -> bool:
        """Return True when name has a finalized body."""
        with self._lock:
            entry = self._entries.get(name)
            return entry is not None and entry.state is EntryState.FINALIZED

    def entry(self, name: str) -> RegistryEntry | None:
        """Return the current entry of name, if any."""
        with self._lock:
            return self._entries.get(name)

    def snapshot(self) -> Mapping[str, SchemaRef]:
        """Return finalized component bodies keyed by name, sorted by name."""
        with self._lock:
            finalized = {
                name: entry.schema
                for name, entry in sorted(self._entries.items())
                if entry.state is EntryState.FINALIZED and entry.schema is not None
            }
        return MappingProxyType(finalized)

    def close(self) -> None:
        """Seal the registry; later reserve or finalize calls fail."""
        with self._lock:
            self._closed = True

    def _ensure_open(self) -> None:
        if self._closed:
            raise ComponentRegistryError("Component registry is closed; the document is built")
