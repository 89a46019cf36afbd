"""The operating system and CPU architecture this process runs on."""

from __future__ import annotations

import platform as _platform
import sys
from dataclasses import dataclass

__all__ = ["PlatformInfo", "current_platform", "platform_string"]

_ARCHITECTURES = {
    "x86_64": ("amd64", ""),
    "amd64": ("amd64", ""),
    "i386": ("386", ""),
    "i486": ("386", ""),
    "i586": ("386", ""),
    "i686": ("386", ""),
    "x86": ("386", ""),
    "aarch64": ("arm64", "v8"),
    "arm64": ("arm64", "v8"),
    "armv8l": ("arm", "v8"),
    "armv7l": ("arm", "v7"),
    "armv7": ("arm", "v7"),
    "armv6l": ("arm", "v6"),
    "armv6": ("arm", "v6"),
    "armv5tel": ("arm", "v5"),
    "armv5l": ("arm", "v5"),
    "arm": ("arm", ""),
    "ppc64le": ("ppc64le", ""),
    "ppc64": ("ppc64", ""),
    "s390x": ("s390x", ""),
    "mips": ("mips", ""),
    "mips64": ("mips64", ""),
    "riscv64": ("riscv64", ""),
}


@dataclass(frozen=True)
class PlatformInfo:
    """An OS, architecture and optional CPU variant."""

    os: str
    architecture: str
    variant: str = ""


def _os_name() -> str:
    name = sys.platform
    if name == "win32" or name == "cygwin":
        return "windows"
    for prefix in ("linux", "freebsd", "openbsd", "netbsd", "darwin", "aix", "sunos"):
        if name.startswith(prefix):
            return "solaris" if prefix == "sunos" else prefix
    return name


def current_platform() -> PlatformInfo:
    """Describe the platform this process runs on."""
    machine = _platform.machine().lower()
    architecture, variant = _ARCHITECTURES.get(machine, (machine, ""))
    return PlatformInfo(os=_os_name(), architecture=architecture, variant=variant)


def platform_string() -> str:
    """Return ``os-arch`` or ``os-arch-variant``, or ``unknown`` without an OS."""
    info = current_platform()
    if not info.os:
        return "unknown"
    if not info.variant:
        return f"{info.os}-{info.architecture}"
    return f"{info.os}-{info.architecture}-{info.variant}"