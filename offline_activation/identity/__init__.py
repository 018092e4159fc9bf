"""Machine identity providers."""

from .base import MachineIdentityProvider
from .providers import (
    ChainedIdentityProvider,
    DarwinPlatformUUIDProvider,
    LinuxMachineIdProvider,
    MacAddressProvider,
    StaticIdentityProvider,
    WindowsMachineGuidProvider,
    detect_identity_provider,
)

__all__ = [
    "MachineIdentityProvider",
    "ChainedIdentityProvider",
    "DarwinPlatformUUIDProvider",
    "LinuxMachineIdProvider",
    "MacAddressProvider",
    "StaticIdentityProvider",
    "WindowsMachineGuidProvider",
    "detect_identity_provider",
]
