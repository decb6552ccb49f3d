"""Template-driven cloud-init generator.

:class:`CloudInitGenerator` turns a
:class:`~gardenlinux_ext.apis.extensions.GeneratorInput` into cloud-init user
data by rendering a Jinja2 template.  OS flavours customise the output through
a values provider whose resolved mapping is merged into the template context.

Template context::

    Bootstrap   bool
    Type        OperatingSystemConfig spec.type
    Purpose     "provision" | "reconcile"
    Path        systemd units directory
    CRI         CRI name or None
    Units       [{Name, Content (base64 or None), DropIns: {Path, Items: [{Name, Content}]}}]
    Files       [{Path, Dirname, Content (base64), Permissions ("0644" or None)}]
    ...         anything the values provider returns
"""

from __future__ import annotations

import base64
import logging
import posixpath
from typing import Any, Dict, List, Optional, Protocol, Tuple

from jinja2 import Environment, Template

from gardenlinux_ext.apis.extensions import (
    GeneratorInput,
    OperatingSystemConfig,
    OperatingSystemConfigPurpose,
)

logger = logging.getLogger(__name__)

#: Where systemd units are written on the node.
DEFAULT_UNITS_PATH = "/etc/systemd/system"


class ValuesProvider(Protocol):
    """Supplies OS specific template values.

    ``resolve`` returns ``None`` when the configuration does not belong to the
    provider's OS type and raises when the configuration is invalid.
    """

    def resolve(self, osc: OperatingSystemConfig) -> Optional[Dict[str, Any]]:
        ...


def parse_template(name: str, text: str) -> Template:
    """Compile *text* into a Jinja2 template.

    Raises
    ------
    jinja2.TemplateSyntaxError
        If the template cannot be parsed.
    """
    env = Environment(keep_trailing_newline=True, autoescape=False)
    template = env.from_string(text)
    template.name = name
    return template


def _b64(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


class CloudInitGenerator:
    """Render cloud-init for an OperatingSystemConfig.

    The generator holds no per-call state; ``generate`` may be called
    concurrently.
    """

    def __init__(
        self,
        template: Template,
        units_path: str,
        cmd: str,
        values_provider: ValuesProvider,
    ) -> None:
        self.template = template
        self.units_path = units_path
        self.cmd = cmd
        self.values_provider = values_provider

    def template_values(self, data: GeneratorInput) -> Dict[str, Any]:
        """Build the template context for *data* (without provider values)."""
        units: List[Dict[str, Any]] = []
        for unit in data.units:
            entry: Dict[str, Any] = {
                "Name": unit.name,
                "Content": _b64(unit.content) if unit.content is not None else None,
                "DropIns": None,
            }
            if unit.drop_ins:
                entry["DropIns"] = {
                    "Path": posixpath.join(self.units_path, f"{unit.name}.d"),
                    "Items": [
                        {"Name": d.name, "Content": _b64(d.content)}
                        for d in unit.drop_ins
                    ],
                }
            units.append(entry)

        files: List[Dict[str, Any]] = []
        for f in data.files:
            files.append(
                {
                    "Path": f.path,
                    "Dirname": posixpath.dirname(f.path),
                    "Content": _b64(f.content),
                    "Permissions": (
                        f"{f.permissions:04o}" if f.permissions is not None else None
                    ),
                }
            )

        spec = data.object.spec
        return {
            "Bootstrap": data.bootstrap,
            "Type": spec.type,
            "Purpose": spec.purpose.value,
            "Path": self.units_path,
            "CRI": data.cri.name.value if data.cri is not None else None,
            "Units": units,
            "Files": files,
        }

    def generate(self, data: GeneratorInput) -> Tuple[bytes, Optional[str]]:
        """Render cloud-init for *data*.

        Returns
        -------
        tuple[bytes, str | None]
            ``(cloud_init, reload_command)``.  The reload command is only set
            for reconcile runs that carry a cloud-config path.

        Raises
        ------
        Exception
            Whatever the values provider raises; nothing is rendered then.
        """
        values = self.template_values(data)

        additional = self.values_provider.resolve(data.object)
        if additional:
            values.update(additional)

        rendered = self.template.render(**values)
        logger.debug(
            "Rendered %s cloud-init (%d bytes) for type %s",
            values["Purpose"],
            len(rendered),
            values["Type"],
        )

        cmd: Optional[str] = None
        if (
            data.object.spec.purpose == OperatingSystemConfigPurpose.RECONCILE
            and data.path
        ):
            cmd = self.cmd % data.path

        return rendered.encode("utf-8"), cmd
