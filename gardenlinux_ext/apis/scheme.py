"""Versioned decoding of provider configuration payloads.

A :class:`Scheme` maps ``(apiVersion, kind)`` pairs to pydantic models.  It is
assembled once by :func:`new_scheme` from installer callables and is
read-only afterwards, so a single instance can be shared by any number of
concurrent decode calls.

Payloads are JSON or YAML documents carrying ``apiVersion`` and ``kind``::

    apiVersion: gardenlinux.os.extensions.gardener.cloud/v1alpha1
    kind: OperatingSystemConfiguration
    linuxSecurityModule: SELinux
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

GroupVersionKind = Tuple[str, str]  # (apiVersion, kind)
Installer = Callable[[Dict[GroupVersionKind, Type[BaseModel]]], None]

M = TypeVar("M", bound=BaseModel)


class SchemeError(RuntimeError):
    """Raised when a scheme cannot be assembled."""


class DecodeError(ValueError):
    """Raised when a payload is malformed or does not match a known schema."""


def register_kind(
    registry: Dict[GroupVersionKind, Type[BaseModel]],
    api_version: str,
    kind: str,
    model: Type[BaseModel],
) -> None:
    """Add ``(api_version, kind) -> model`` to *registry*.

    Raises
    ------
    SchemeError
        If the kind is already registered with a different model.
    """
    gvk = (api_version, kind)
    existing = registry.get(gvk)
    if existing is not None and existing is not model:
        raise SchemeError(
            f"{kind} in {api_version} is already registered to {existing.__name__}"
        )
    registry[gvk] = model


@dataclass(frozen=True)
class Scheme:
    """Immutable kind registry and decoder."""

    known_types: Mapping[GroupVersionKind, Type[BaseModel]]

    def recognizes(self, api_version: str, kind: str) -> bool:
        return (api_version, kind) in self.known_types

    def decode(self, raw: bytes, into: Optional[Type[M]] = None) -> M:
        """Decode *raw* into the model registered for its ``apiVersion``/``kind``.

        Parameters
        ----------
        raw:
            JSON or YAML document bytes.
        into:
            Expected model.  When given, the document must declare a kind
            registered to exactly this model.

        Raises
        ------
        DecodeError
            On unparsable bytes, a missing or unknown ``apiVersion``/``kind``,
            a kind that does not match *into*, or a schema validation failure.
            The underlying exception is chained.
        """
        try:
            data: Any = yaml.safe_load(raw)
        except (yaml.YAMLError, UnicodeDecodeError) as exc:
            raise DecodeError(f"malformed payload: {exc}") from exc

        if not isinstance(data, dict):
            raise DecodeError(
                f"payload must be a mapping, got {type(data).__name__}"
            )

        api_version = data.get("apiVersion")
        kind = data.get("kind")
        if not api_version:
            raise DecodeError("Object 'apiVersion' is missing in payload")
        if not kind:
            raise DecodeError("Object 'kind' is missing in payload")
        if not isinstance(api_version, str) or not isinstance(kind, str):
            raise DecodeError("Object 'apiVersion' and 'kind' must be strings")

        model = self.known_types.get((api_version, kind))
        if model is None:
            raise DecodeError(f'no kind "{kind}" is registered for version "{api_version}"')
        if into is not None and model is not into:
            raise DecodeError(
                f"payload kind {kind} ({api_version}) cannot be decoded into {into.__name__}"
            )

        try:
            obj = model.model_validate(data)
        except ValidationError as exc:
            raise DecodeError(f"invalid {kind}: {exc}") from exc

        logger.debug("Decoded %s (%s)", kind, api_version)
        return obj  # type: ignore[return-value]


def new_scheme(*installers: Installer) -> Scheme:
    """Run *installers* against a fresh registry and freeze the result.

    Raises
    ------
    SchemeError
        Propagated from an installer that fails to register its kinds.
    """
    registry: Dict[GroupVersionKind, Type[BaseModel]] = {}
    for install in installers:
        install(registry)
    return Scheme(known_types=MappingProxyType(dict(registry)))
