"""Pydantic models for the extension framework's OperatingSystemConfig.

Defines the data structures for:
- The ``OperatingSystemConfig`` resource handed to OS extensions
- The unit, drop-in and file records a generator renders into cloud-init
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

EXTENSIONS_API_VERSION = "extensions.gardener.cloud/v1alpha1"


class OperatingSystemConfigPurpose(str, Enum):
    """Why the cloud-init is generated."""

    PROVISION = "provision"
    RECONCILE = "reconcile"


class CRIName(str, Enum):
    """Container runtimes a node can be configured with."""

    DOCKER = "docker"
    CONTAINERD = "containerd"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RawExtension(_CamelModel):
    """Opaque serialized payload; only its owner knows how to decode it."""

    raw: bytes = b""


class CRIConfig(_CamelModel):
    name: CRIName


class OperatingSystemConfigSpec(_CamelModel):
    type: str
    purpose: OperatingSystemConfigPurpose = OperatingSystemConfigPurpose.PROVISION
    provider_config: Optional[RawExtension] = Field(default=None, alias="providerConfig")
    cri_config: Optional[CRIConfig] = Field(default=None, alias="criConfig")
    reload_config_file_path: Optional[str] = Field(
        default=None, alias="reloadConfigFilePath"
    )


class OperatingSystemConfig(_CamelModel):
    """The resource an OS extension reconciles.

    Only ``spec`` is interpreted; ``metadata`` is carried for diagnostics.
    """

    api_version: str = Field(default=EXTENSIONS_API_VERSION, alias="apiVersion")
    kind: str = "OperatingSystemConfig"
    metadata: Dict[str, Any] = Field(default_factory=dict)
    spec: OperatingSystemConfigSpec


# ---------------------------------------------------------------------------
# Generator input
# ---------------------------------------------------------------------------


class DropIn(_CamelModel):
    name: str
    content: bytes


class Unit(_CamelModel):
    """A systemd unit. ``content=None`` means the unit ships with the image."""

    name: str
    content: Optional[bytes] = None
    drop_ins: List[DropIn] = Field(default_factory=list, alias="dropIns")


class File(_CamelModel):
    path: str
    content: bytes
    permissions: Optional[int] = None


class GeneratorInput(_CamelModel):
    """Everything a cloud-init generator needs for one render.

    ``path`` is the location of the downloaded cloud-config on the node; it is
    only used to build the reload command for reconcile runs.
    """

    object: OperatingSystemConfig
    bootstrap: bool = False
    units: List[Unit] = Field(default_factory=list)
    files: List[File] = Field(default_factory=list)
    cri: Optional[CRIConfig] = None
    path: Optional[str] = None
