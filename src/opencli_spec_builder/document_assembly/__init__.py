"""Document assembly exports."""

from .document_builder import (
    CommandBuilder,
    DocumentAssemblyError,
    DocumentBuilder,
    UnresolvedReference,
)
from .document_models import (
    KNOWN_PLATFORMS,
    OPENCLI_VERSION,
    Arity,
    Command,
    Components,
    Contact,
    Document,
    EnvironmentVariable,
    ExternalDocs,
    Info,
    License,
    MediaType,
    Parameter,
    ParameterLocation,
    ParameterScope,
    Platform,
    Response,
    Tag,
)

__all__ = [
    "KNOWN_PLATFORMS",
    "OPENCLI_VERSION",
    "Arity",
    "Command",
    "CommandBuilder",
    "Components",
    "Contact",
    "Document",
    "DocumentAssemblyError",
    "DocumentBuilder",
    "EnvironmentVariable",
    "ExternalDocs",
    "Info",
    "License",
    "MediaType",
    "Parameter",
    "ParameterLocation",
    "ParameterScope",
    "Platform",
    "Response",
    "Tag",
    "UnresolvedReference",
]
