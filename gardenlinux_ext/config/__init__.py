"""OperatingSystemConfig manifest loading."""

from gardenlinux_ext.config.loader import load_manifest, parse_manifest

__all__ = [
    "load_manifest",
    "parse_manifest",
]
