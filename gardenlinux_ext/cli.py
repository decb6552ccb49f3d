"""CLI entry point for gardenlinux-ext, built on typer.

Provides ``render`` and ``resolve`` commands for Garden Linux
OperatingSystemConfig manifests.

Usage::

    python -m gardenlinux_ext --help
    python -m gardenlinux_ext render osc.yaml --bootstrap > cloud-init.sh
    python -m gardenlinux_ext render osc.yaml --purpose reconcile -o cloud-init.sh
    python -m gardenlinux_ext resolve osc.yaml --json
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from gardenlinux_ext import ui
from gardenlinux_ext.apis.extensions import GeneratorInput, OperatingSystemConfigPurpose
from gardenlinux_ext.apis.gardenlinux import OS_TYPE_GARDENLINUX
from gardenlinux_ext.config.loader import load_manifest
from gardenlinux_ext.generator.generator import ProviderConfigError, cloud_init_generator

EXIT_SUCCESS = 0
EXIT_INVALID = 1
EXIT_NOT_APPLICABLE = 2

app = typer.Typer(
    name="gardenlinux-ext",
    help="Render cloud-init for Garden Linux nodes from OperatingSystemConfig manifests.",
    no_args_is_help=True,
    add_completion=False,
)


# ── Root callback (global options) ───────────────────────────────────────────


@app.callback()
def _root_callback(
    debug: bool = typer.Option(
        False, "--debug", help="Enable debug logging."
    ),
) -> None:
    """Garden Linux cloud-init generator."""
    if debug:
        logging.basicConfig(level=logging.DEBUG)


def _load(
    manifest: Path,
    *,
    bootstrap: bool = False,
    purpose: Optional[OperatingSystemConfigPurpose] = None,
) -> GeneratorInput:
    try:
        return load_manifest(
            manifest,
            bootstrap=bootstrap,
            purpose=purpose.value if purpose is not None else None,
        )
    except (FileNotFoundError, ValueError) as exc:
        ui.error_msg(str(exc))
        raise typer.Exit(EXIT_INVALID) from exc


# ── render command ───────────────────────────────────────────────────────────


@app.command()
def render(
    manifest: Path = typer.Argument(..., help="OperatingSystemConfig manifest (YAML)."),
    bootstrap: bool = typer.Option(
        False, "--bootstrap", help="Render the initial bootstrap cloud-init."
    ),
    purpose: Optional[OperatingSystemConfigPurpose] = typer.Option(
        None, "--purpose", help="Override spec.purpose of the manifest."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write cloud-init here instead of stdout."
    ),
) -> None:
    """Render cloud-init for a Garden Linux OperatingSystemConfig.

    Exit codes: 0 = rendered, 1 = invalid manifest or provider config,
    2 = manifest is not a Garden Linux config.
    """
    generator = cloud_init_generator()
    data = _load(manifest, bootstrap=bootstrap, purpose=purpose)

    os_type = data.object.spec.type
    if os_type != OS_TYPE_GARDENLINUX:
        ui.warn(f"OperatingSystemConfig type {os_type!r} is not {OS_TYPE_GARDENLINUX!r}; nothing to render.")
        raise typer.Exit(EXIT_NOT_APPLICABLE)

    try:
        cloud_init, cmd = generator.generate(data)
    except ProviderConfigError as exc:
        ui.error_msg(str(exc))
        raise typer.Exit(EXIT_INVALID) from exc

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(cloud_init)
        ui.ok(f"cloud-init written to {output}")
    else:
        typer.echo(cloud_init.decode("utf-8"), nl=False)

    if cmd:
        ui.detail("reload command", cmd)


# ── resolve command ──────────────────────────────────────────────────────────


@app.command()
def resolve(
    manifest: Path = typer.Argument(..., help="OperatingSystemConfig manifest (YAML)."),
    json_flag: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON."
    ),
) -> None:
    """Print the Garden Linux template values resolved for a manifest."""
    resolver = cloud_init_generator().values_provider
    data = _load(manifest)

    try:
        values = resolver.resolve(data.object)
    except ProviderConfigError as exc:
        ui.error_msg(str(exc))
        raise typer.Exit(EXIT_INVALID) from exc

    if values is None:
        ui.warn("not applicable: not a Garden Linux OperatingSystemConfig")
        raise typer.Exit(EXIT_NOT_APPLICABLE)

    if json_flag:
        typer.echo(json.dumps(values, indent=2, sort_keys=True))
        return
    for key in sorted(values):
        typer.echo(f"{key}={values[key]}")


# ── Entry point ──────────────────────────────────────────────────────────────


def main() -> int:
    """Run the CLI and return an exit code."""
    try:
        app()
        return 0
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0


if __name__ == "__main__":
    sys.exit(main())
