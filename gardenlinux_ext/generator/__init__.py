"""Cloud-init generation for Garden Linux nodes."""

from gardenlinux_ext.generator.generator import (
    CMD,
    DEFAULT_LINUX_SECURITY_MODULE,
    LinuxSecurityModuleResolver,
    ProviderConfigError,
    cloud_init_generator,
    load_cloud_init_template,
    new_cloud_init_generator,
)
from gardenlinux_ext.generator.template import (
    DEFAULT_UNITS_PATH,
    CloudInitGenerator,
    ValuesProvider,
    parse_template,
)

__all__ = [
    "CMD",
    "DEFAULT_LINUX_SECURITY_MODULE",
    "DEFAULT_UNITS_PATH",
    "CloudInitGenerator",
    "LinuxSecurityModuleResolver",
    "ProviderConfigError",
    "ValuesProvider",
    "cloud_init_generator",
    "load_cloud_init_template",
    "new_cloud_init_generator",
    "parse_template",
]
