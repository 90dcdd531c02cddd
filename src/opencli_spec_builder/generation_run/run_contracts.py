"""Generation run entities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from opencli_spec_builder.configuration.runtime_settings import BuildConfiguration
from opencli_spec_builder.document_assembly.document_models import Document
from opencli_spec_builder.rendering.document_renderer import OutputFormat
from opencli_spec_builder.type_descriptors.descriptor_catalog import DescriptorCatalog


@dataclass(frozen=True)
class GenerationRequest:
    """Input contract for generating one document."""

    config_path: str
    output_path: str | None = None
    output_format: str | None = None


@dataclass(frozen=True)
class GenerationOutcome:
    """Output contract for one completed generation."""

    document: Document
    rendered: str
    output_format: OutputFormat
    output_path: Path | None

    @property
    def component_count(self) -> int:
        """Number of named schemas in the document."""
        return len(self.document.components.schemas)


@dataclass(frozen=True)
class GenerationArtifacts:
    """Loaded inputs required during generation."""

    configuration: BuildConfiguration
    catalog: DescriptorCatalog
