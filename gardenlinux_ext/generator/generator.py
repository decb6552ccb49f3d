"""Garden Linux cloud-init generator.

Wires the packaged Garden Linux template into a
:class:`~gardenlinux_ext.generator.template.CloudInitGenerator` together with
:class:`LinuxSecurityModuleResolver`, which supplies the
``LinuxSecurityModule`` template value from the optional provider config.

The shared generator is built once per process by :func:`cloud_init_generator`.
A scheme or template that fails to initialise stops the process.
"""

from __future__ import annotations

import functools
import logging
import sys
from importlib.resources import files
from typing import Dict, NoReturn, Optional

from gardenlinux_ext.apis.extensions import OperatingSystemConfig
from gardenlinux_ext.apis.gardenlinux import (
    OS_TYPE_GARDENLINUX,
    OperatingSystemConfiguration,
    add_to_scheme,
)
from gardenlinux_ext.apis.scheme import DecodeError, Scheme, new_scheme
from gardenlinux_ext.generator.template import (
    DEFAULT_UNITS_PATH,
    CloudInitGenerator,
    parse_template,
)

logger = logging.getLogger(__name__)

#: Command that re-applies a downloaded cloud-config on reconcile.
CMD = "/usr/bin/env bash %s"

TEMPLATE_NAME = "cloud-init.gardenlinux.template"

DEFAULT_LINUX_SECURITY_MODULE = "AppArmor"


class ProviderConfigError(ValueError):
    """Raised when an OperatingSystemConfig's provider config cannot be decoded."""


class LinuxSecurityModuleResolver:
    """Resolve the ``LinuxSecurityModule`` template value.

    Any string is accepted as a module name; the node image decides what it
    supports.
    """

    def __init__(self, decoder: Scheme) -> None:
        self.decoder = decoder

    def resolve(self, osc: OperatingSystemConfig) -> Optional[Dict[str, str]]:
        """Return the template values for *osc*.

        Returns ``None`` when *osc* is not a Garden Linux config.  Otherwise
        the mapping always holds exactly ``LinuxSecurityModule``.

        Raises
        ------
        ProviderConfigError
            If the provider config is present but cannot be decoded.
        """
        if osc.spec.type != OS_TYPE_GARDENLINUX:
            return None

        values = {"LinuxSecurityModule": DEFAULT_LINUX_SECURITY_MODULE}

        if osc.spec.provider_config is None:
            return values

        try:
            obj = self.decoder.decode(
                osc.spec.provider_config.raw, into=OperatingSystemConfiguration
            )
        except DecodeError as exc:
            raise ProviderConfigError(f"failed to decode provider config: {exc}") from exc

        if obj.linux_security_module is not None:
            values["LinuxSecurityModule"] = obj.linux_security_module

        logger.debug("Resolved LinuxSecurityModule=%r", values["LinuxSecurityModule"])
        return values


def load_cloud_init_template() -> str:
    """Read the packaged Garden Linux cloud-init template."""
    resource = files("gardenlinux_ext.generator").joinpath("templates").joinpath(TEMPLATE_NAME)
    return resource.read_text(encoding="utf-8")


def new_cloud_init_generator(
    scheme: Optional[Scheme] = None,
    template_text: Optional[str] = None,
) -> CloudInitGenerator:
    """Build a Garden Linux generator.

    Parameters
    ----------
    scheme:
        Decoding scheme for provider configs.  Defaults to a scheme with the
        Garden Linux kinds installed.
    template_text:
        Template source.  Defaults to the packaged template.

    Raises
    ------
    SchemeError
        If the Garden Linux kinds cannot be registered.
    jinja2.TemplateSyntaxError
        If the template does not parse.
    """
    if scheme is None:
        scheme = new_scheme(add_to_scheme)
    if template_text is None:
        template_text = load_cloud_init_template()

    template = parse_template("cloud-init", template_text)
    return CloudInitGenerator(
        template,
        DEFAULT_UNITS_PATH,
        CMD,
        LinuxSecurityModuleResolver(scheme),
    )


def log_err_and_exit(exc: BaseException, msg: str) -> NoReturn:
    """Log *msg* with *exc* and terminate the process."""
    logger.error("%s: %s", msg, exc)
    sys.exit(1)


@functools.lru_cache(maxsize=None)
def cloud_init_generator() -> CloudInitGenerator:
    """Return the process-wide Garden Linux generator, building it on first use."""
    try:
        return new_cloud_init_generator()
    except Exception as exc:
        log_err_and_exit(exc, "Could not initialize the cloud-init generator")
