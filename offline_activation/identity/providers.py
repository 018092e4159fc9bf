"""Per-platform machine identity strategies and host detection."""

from __future__ import annotations

import logging
import platform
import re
import subprocess
import uuid
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from ..errors import IdentityUnavailableError
from .base import MachineIdentityProvider

logger = logging.getLogger(__name__)

CommandRunner = Callable[[Sequence[str]], str]

COMMAND_TIMEOUT_S = 10.0
_IFF_LOOPBACK = 0x8
_MULTICAST_BIT = 0x010000000000
_IOREG_UUID_RE = re.compile(r'"IOPlatformUUID"\s*=\s*"([^"]+)"')


def run_command(argv: Sequence[str]) -> str:
    """Run an external probe and return its stdout."""
    completed = subprocess.run(
        list(argv),
        check=True,
        capture_output=True,
        text=True,
        timeout=COMMAND_TIMEOUT_S,
    )
    return completed.stdout


def _probe(runner: CommandRunner, argv: Sequence[str]) -> str:
    try:
        return runner(argv)
    except (OSError, subprocess.SubprocessError) as exc:
        raise IdentityUnavailableError(f"{argv[0]} probe failed: {exc}") from exc


class StaticIdentityProvider(MachineIdentityProvider):
    """Fixed identity, for tests and explicitly configured hosts."""

    name = "static"

    def __init__(self, value: str) -> None:
        self.value = value

    def identify(self) -> str:
        if not self.value:
            raise IdentityUnavailableError("static machine identity is empty")
        return self.value


class LinuxMachineIdProvider(MachineIdentityProvider):
    """Read the systemd / D-Bus machine identifier files."""

    name = "linux-machine-id"

    DEFAULT_PATHS = (Path("/etc/machine-id"), Path("/var/lib/dbus/machine-id"))

    def __init__(self, paths: Optional[Iterable[Path]] = None) -> None:
        self.paths = tuple(paths) if paths is not None else self.DEFAULT_PATHS

    def identify(self) -> str:
        for path in self.paths:
            try:
                value = path.read_text(encoding="utf-8").strip()
            except (OSError, UnicodeDecodeError):
                continue
            if value:
                return value
        raise IdentityUnavailableError("no readable machine-id file")


class DarwinPlatformUUIDProvider(MachineIdentityProvider):
    """Read ``IOPlatformUUID`` from the IOKit registry."""

    name = "darwin-platform-uuid"

    def __init__(self, runner: CommandRunner = run_command) -> None:
        self.runner = runner

    def identify(self) -> str:
        output = _probe(self.runner, ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"])
        match = _IOREG_UUID_RE.search(output)
        if match is None:
            raise IdentityUnavailableError("IOPlatformUUID not present in ioreg output")
        return match.group(1).strip()


class WindowsMachineGuidProvider(MachineIdentityProvider):
    """Read ``MachineGuid`` from the Cryptography registry key."""

    name = "windows-machine-guid"

    KEY = "HKEY_LOCAL_MACHINE\\SOFTWARE\\Microsoft\\Cryptography"

    def __init__(self, runner: CommandRunner = run_command) -> None:
        self.runner = runner

    def identify(self) -> str:
        output = _probe(self.runner, ["reg", "query", self.KEY, "/v", "MachineGuid"])
        for line in output.splitlines():
            if "MachineGuid" not in line:
                continue
            fields = line.split()
            if len(fields) >= 3:
                return fields[-1]
        raise IdentityUnavailableError("MachineGuid not present in registry output")


class MacAddressProvider(MachineIdentityProvider):
    """Hardware address of the first non-loopback network interface.

    Last resort only: addresses can be changed by the user on most systems.
    """

    name = "mac-address"

    def __init__(self, sysfs_root: Path = Path("/sys/class/net"), getnode: Callable[[], int] = uuid.getnode) -> None:
        self.sysfs_root = sysfs_root
        self.getnode = getnode

    def identify(self) -> str:
        address = self._from_sysfs()
        if address:
            return address

        node = self.getnode()
        # uuid.getnode() falls back to a random value with the multicast bit set.
        if node & _MULTICAST_BIT:
            raise IdentityUnavailableError("no hardware network address available")
        return ":".join(f"{(node >> shift) & 0xFF:02x}" for shift in range(40, -8, -8))

    def _from_sysfs(self) -> Optional[str]:
        try:
            interfaces = list(self.sysfs_root.iterdir())
        except OSError:
            return None

        candidates = []
        for iface in interfaces:
            try:
                flags = int((iface / "flags").read_text().strip(), 16)
                address = (iface / "address").read_text().strip().lower()
                index = int((iface / "ifindex").read_text().strip())
            except (OSError, ValueError):
                continue
            if flags & _IFF_LOOPBACK or not address:
                continue
            if all(part == "00" for part in address.split(":")):
                continue
            candidates.append((index, address))

        if not candidates:
            return None
        return min(candidates)[1]


class ChainedIdentityProvider(MachineIdentityProvider):
    """Try strategies in order; the first that succeeds wins."""

    name = "chained"

    def __init__(self, providers: Sequence[MachineIdentityProvider]) -> None:
        self.providers: List[MachineIdentityProvider] = list(providers)

    def identify(self) -> str:
        failures = []
        for provider in self.providers:
            try:
                value = provider.identify()
            except IdentityUnavailableError as exc:
                logger.debug("identity strategy %s unavailable: %s", provider.name, exc)
                failures.append(provider.name)
                continue
            logger.debug("machine identity resolved by %s", provider.name)
            return value
        raise IdentityUnavailableError(f"no machine identity strategy succeeded (tried: {', '.join(failures) or 'none'})")


def detect_identity_provider(system: Optional[str] = None) -> MachineIdentityProvider:
    """Select the identity strategy chain for the current host."""
    system = system or platform.system()
    strategies: List[MachineIdentityProvider] = []
    if system == "Linux":
        strategies.append(LinuxMachineIdProvider())
    elif system == "Darwin":
        strategies.append(DarwinPlatformUUIDProvider())
    elif system == "Windows":
        strategies.append(WindowsMachineGuidProvider())
    strategies.append(MacAddressProvider())
    return ChainedIdentityProvider(strategies)
