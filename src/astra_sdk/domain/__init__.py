from .types import (
    FIELD_ATTRS,
    RawConfig,
    CapabilityKind,
    CapabilitySet,
    Activation,
    Available,
    Unavailable,
    BundleSource,
    BundleLocation,
    redact,
)

__all__ = [
    "FIELD_ATTRS",
    "RawConfig",
    "CapabilityKind",
    "CapabilitySet",
    "Activation",
    "Available",
    "Unavailable",
    "BundleSource",
    "BundleLocation",
    "redact",
]
