"""OperatingSystemConfig manifest loading.

Reads an ``OperatingSystemConfig`` YAML manifest into a
:class:`~gardenlinux_ext.apis.extensions.GeneratorInput`::

    apiVersion: extensions.gardener.cloud/v1alpha1
    kind: OperatingSystemConfig
    metadata:
      name: worker-a
    spec:
      type: gardenlinux
      purpose: provision
      reloadConfigFilePath: /var/lib/cloud-config-downloader/cloud-config
      criConfig:
        name: containerd
      providerConfig:
        apiVersion: gardenlinux.os.extensions.gardener.cloud/v1alpha1
        kind: OperatingSystemConfiguration
        linuxSecurityModule: SELinux
      units:
      - name: kubelet.service
        content: |
          [Unit]
          ...
        dropIns:
        - name: 10-opts.conf
          content: ...
      files:
      - path: /var/lib/kubelet/ca.crt
        permissions: 0644
        content:
          inline:
            encoding: b64
            data: LS0tLS1...

``spec.providerConfig`` may be a mapping, re-serialised to canonical JSON, or
a string taken verbatim as the raw payload.
"""

from __future__ import annotations

import base64
import binascii
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from gardenlinux_ext.apis.extensions import (
    CRIConfig,
    DropIn,
    File,
    GeneratorInput,
    OperatingSystemConfig,
    RawExtension,
    Unit,
)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _raw_provider_config(value: Any) -> Optional[RawExtension]:
    if value is None:
        return None
    if isinstance(value, str):
        return RawExtension(raw=value.encode("utf-8"))
    if isinstance(value, dict):
        return RawExtension(raw=json.dumps(value, sort_keys=True).encode("utf-8"))
    raise ValueError(
        f"spec.providerConfig must be a mapping or a string, got {type(value).__name__}"
    )


def _permissions(value: Any) -> Optional[int]:
    """Accept ``0644`` (YAML octal int), ``420`` or ``"0644"``."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"invalid file permissions: {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value), 8)
    except ValueError as exc:
        raise ValueError(f"invalid file permissions: {value!r}") from exc


def _file_content(path: str, content: Any) -> bytes:
    inline = (content or {}).get("inline") if isinstance(content, dict) else None
    if not isinstance(inline, dict):
        raise ValueError(f"file {path}: only inline content is supported")
    data = str(inline.get("data") or "")
    encoding = inline.get("encoding") or ""
    if encoding == "b64":
        try:
            return base64.b64decode(data, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"file {path}: invalid base64 content") from exc
    if encoding:
        raise ValueError(f"file {path}: unsupported encoding {encoding!r}")
    return data.encode("utf-8")


def _units(raw_units: List[Dict[str, Any]]) -> List[Unit]:
    units: List[Unit] = []
    for item in raw_units:
        if not isinstance(item, dict):
            raise ValueError(f"invalid manifest: unit entry must be a mapping, got {item!r}")
        content = item.get("content")
        drop_ins: List[DropIn] = []
        for d in item.get("dropIns") or []:
            if not isinstance(d, dict):
                raise ValueError(f"invalid manifest: drop-in entry must be a mapping, got {d!r}")
            drop_ins.append(
                DropIn(name=d["name"], content=str(d.get("content") or "").encode("utf-8"))
            )
        units.append(
            Unit(
                name=item["name"],
                content=str(content).encode("utf-8") if content is not None else None,
                drop_ins=drop_ins,
            )
        )
    return units


def _files(raw_files: List[Dict[str, Any]]) -> List[File]:
    files: List[File] = []
    for item in raw_files:
        if not isinstance(item, dict):
            raise ValueError(f"invalid manifest: file entry must be a mapping, got {item!r}")
        path = item["path"]
        files.append(
            File(
                path=path,
                content=_file_content(path, item.get("content")),
                permissions=_permissions(item.get("permissions")),
            )
        )
    return files


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def parse_manifest(
    data: Dict[str, Any],
    *,
    bootstrap: bool = False,
    purpose: Optional[str] = None,
) -> GeneratorInput:
    """Build a :class:`GeneratorInput` from a parsed manifest mapping.

    *purpose*, when given, overrides ``spec.purpose``.

    Raises
    ------
    ValueError
        If the manifest is structurally invalid.
    """
    if not isinstance(data, dict):
        raise ValueError("manifest must be a mapping")
    spec = data.get("spec")
    if not isinstance(spec, dict):
        raise ValueError("manifest has no spec")

    try:
        cri = CRIConfig.model_validate(spec["criConfig"]) if spec.get("criConfig") else None
        obj = OperatingSystemConfig.model_validate(
            {
                "apiVersion": data.get("apiVersion") or "extensions.gardener.cloud/v1alpha1",
                "kind": data.get("kind") or "OperatingSystemConfig",
                "metadata": data.get("metadata") or {},
                "spec": {
                    "type": spec.get("type"),
                    "purpose": purpose or spec.get("purpose") or "provision",
                    "providerConfig": _raw_provider_config(spec.get("providerConfig")),
                    "criConfig": cri,
                    "reloadConfigFilePath": spec.get("reloadConfigFilePath"),
                },
            }
        )
        return GeneratorInput(
            object=obj,
            bootstrap=bootstrap,
            units=_units(spec.get("units") or []),
            files=_files(spec.get("files") or []),
            cri=cri,
            path=spec.get("reloadConfigFilePath"),
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"invalid manifest: missing or malformed field {exc}") from exc
    except ValidationError as exc:
        raise ValueError(f"invalid manifest: {exc}") from exc


def load_manifest(
    path: str | Path,
    *,
    bootstrap: bool = False,
    purpose: Optional[str] = None,
) -> GeneratorInput:
    """Load an OperatingSystemConfig manifest from *path*.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the file is not valid YAML or not a valid manifest.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Manifest not found: {path}")

    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ValueError(f"{path}: invalid YAML: {exc}") from exc

    return parse_manifest(data, bootstrap=bootstrap, purpose=purpose)
