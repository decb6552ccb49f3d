"""Garden Linux provider configuration types.

The provider configuration travels inside ``OperatingSystemConfig.spec`` as
an opaque :class:`~gardenlinux_ext.apis.extensions.RawExtension`; this module
owns its schema.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field

from gardenlinux_ext.apis.scheme import register_kind

#: Type discriminator of OperatingSystemConfigs handled by this extension.
OS_TYPE_GARDENLINUX = "gardenlinux"

GROUP_NAME = "gardenlinux.os.extensions.gardener.cloud"
API_VERSION = f"{GROUP_NAME}/v1alpha1"


class OperatingSystemConfiguration(BaseModel):
    """Garden Linux specific OS configuration.

    ``linux_security_module`` stays ``None`` when the field is absent; an
    explicitly empty string is kept as ``""``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    api_version: str = Field(default=API_VERSION, alias="apiVersion")
    kind: str = "OperatingSystemConfiguration"
    linux_security_module: Optional[str] = Field(
        default=None, alias="linuxSecurityModule"
    )


KNOWN_TYPES: Tuple[Type[BaseModel], ...] = (OperatingSystemConfiguration,)


def add_to_scheme(registry: Dict[Tuple[str, str], Type[BaseModel]]) -> None:
    """Register the Garden Linux kinds with a scheme under construction."""
    for model in KNOWN_TYPES:
        register_kind(registry, API_VERSION, model.model_fields["kind"].default, model)
