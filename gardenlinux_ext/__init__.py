"""Garden Linux operating-system extension - cloud-init generation.

Renders the cloud-init user data that provisions and reconciles Garden Linux
nodes from an ``OperatingSystemConfig`` and its optional Garden Linux
provider configuration.
"""

try:
    from importlib.metadata import version

    __version__ = version("gardenlinux-os-extension")
except Exception:
    __version__ = "0.0.0.dev0"

__all__ = ["__version__"]
