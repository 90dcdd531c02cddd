"""Generation run domain exports."""

from .run_contracts import GenerationArtifacts, GenerationOutcome, GenerationRequest
from .spec_generation_use_case import (
    GenerationRunError,
    assemble_document,
    describe_type,
    execute_spec_generation_run,
)

__all__ = [
    "GenerationRequest",
    "GenerationOutcome",
    "GenerationArtifacts",
    "GenerationRunError",
    "assemble_document",
    "describe_type",
    "execute_spec_generation_run",
]
