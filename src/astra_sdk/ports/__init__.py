from .clients import (
    Closeable,
    BundleDownloader,
    ControlPlane,
    GatewayCredentials,
    CqlCredentials,
    ControlPlaneFactory,
    GatewayFactory,
    CqlFactory,
)

__all__ = [
    "Closeable",
    "BundleDownloader",
    "ControlPlane",
    "GatewayCredentials",
    "CqlCredentials",
    "ControlPlaneFactory",
    "GatewayFactory",
    "CqlFactory",
]
