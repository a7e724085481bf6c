from .client import AstraClient, AstraClientBuilder, is_valid_token
from .domain import BundleLocation, BundleSource, CapabilityKind, CapabilitySet, RawConfig
from .errors import AstraError, CapabilityUnavailable, ConfigurationError, ConnectionFailure, IllegalArgument

__all__ = [
    "AstraClient",
    "AstraClientBuilder",
    "is_valid_token",
    "BundleLocation",
    "BundleSource",
    "CapabilityKind",
    "CapabilitySet",
    "RawConfig",
    "AstraError",
    "CapabilityUnavailable",
    "ConfigurationError",
    "ConnectionFailure",
    "IllegalArgument",
]
