"""Structural fingerprints of schema bodies."""

from __future__ import annotations

import hashlib
import json

from .schema_models import SchemaRef, schema_to_canonical


def schema_fingerprint(schema: SchemaRef) -> str:
    """Return a stable digest of the schema structure, sensitive to property order."""
    canonical = json.dumps(
        schema_to_canonical(schema),
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
