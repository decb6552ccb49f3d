"""Object models and the decoding scheme for Garden Linux configuration."""

from gardenlinux_ext.apis.gardenlinux import (
    API_VERSION,
    OS_TYPE_GARDENLINUX,
    OperatingSystemConfiguration,
    add_to_scheme,
)
from gardenlinux_ext.apis.scheme import DecodeError, Scheme, SchemeError, new_scheme

__all__ = [
    "API_VERSION",
    "DecodeError",
    "OS_TYPE_GARDENLINUX",
    "OperatingSystemConfiguration",
    "Scheme",
    "SchemeError",
    "add_to_scheme",
    "new_scheme",
]
