"""Tests for the Garden Linux LinuxSecurityModule resolver and generator wiring."""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor

import pytest
from jinja2 import TemplateSyntaxError

from gardenlinux_ext.apis.extensions import (
    OperatingSystemConfig,
    OperatingSystemConfigSpec,
    RawExtension,
)
from gardenlinux_ext.apis.gardenlinux import API_VERSION, OS_TYPE_GARDENLINUX, add_to_scheme
from gardenlinux_ext.apis.scheme import new_scheme
from gardenlinux_ext.generator import generator as gen_mod
from gardenlinux_ext.generator.generator import (
    CMD,
    DEFAULT_LINUX_SECURITY_MODULE,
    LinuxSecurityModuleResolver,
    ProviderConfigError,
    cloud_init_generator,
    load_cloud_init_template,
    new_cloud_init_generator,
)
from gardenlinux_ext.generator.template import DEFAULT_UNITS_PATH, CloudInitGenerator


def _osc(os_type: str = OS_TYPE_GARDENLINUX, raw: bytes | None = None) -> OperatingSystemConfig:
    provider_config = RawExtension(raw=raw) if raw is not None else None
    return OperatingSystemConfig(
        spec=OperatingSystemConfigSpec(type=os_type, provider_config=provider_config)
    )


def _payload(**fields) -> bytes:
    doc = {"apiVersion": API_VERSION, "kind": "OperatingSystemConfiguration"}
    doc.update(fields)
    return json.dumps(doc).encode("utf-8")


@pytest.fixture
def resolver() -> LinuxSecurityModuleResolver:
    return LinuxSecurityModuleResolver(new_scheme(add_to_scheme))


# ── type gate ────────────────────────────────────────────────────────


class TestTypeGate:
    def test_other_type_not_applicable(self, resolver):
        assert resolver.resolve(_osc("ubuntu")) is None

    def test_other_type_ignores_valid_payload(self, resolver):
        osc = _osc("coreos", _payload(linuxSecurityModule="SELinux"))
        assert resolver.resolve(osc) is None

    def test_other_type_ignores_garbage_payload(self, resolver):
        assert resolver.resolve(_osc("coreos", b"\x00not yaml{")) is None


# ── defaults and overrides ───────────────────────────────────────────


class TestResolve:
    def test_default_constant(self):
        assert DEFAULT_LINUX_SECURITY_MODULE == "AppArmor"

    def test_no_payload_default(self, resolver):
        assert resolver.resolve(_osc()) == {"LinuxSecurityModule": "AppArmor"}

    def test_payload_without_field_default(self, resolver):
        assert resolver.resolve(_osc(raw=_payload())) == {"LinuxSecurityModule": "AppArmor"}

    def test_payload_with_null_field_default(self, resolver):
        osc = _osc(raw=_payload(linuxSecurityModule=None))
        assert resolver.resolve(osc) == {"LinuxSecurityModule": "AppArmor"}

    def test_selinux_override(self, resolver):
        osc = _osc(raw=_payload(linuxSecurityModule="SELinux"))
        assert resolver.resolve(osc) == {"LinuxSecurityModule": "SELinux"}

    @pytest.mark.parametrize("value", ["AppArmor", "SELinux", "landlock", "Not-A-Module"])
    def test_any_string_accepted(self, resolver, value):
        osc = _osc(raw=_payload(linuxSecurityModule=value))
        assert resolver.resolve(osc) == {"LinuxSecurityModule": value}

    def test_empty_string_kept_verbatim(self, resolver):
        osc = _osc(raw=_payload(linuxSecurityModule=""))
        assert resolver.resolve(osc) == {"LinuxSecurityModule": ""}

    def test_exactly_one_key(self, resolver):
        values = resolver.resolve(_osc(raw=_payload(linuxSecurityModule="SELinux")))
        assert list(values) == ["LinuxSecurityModule"]

    def test_idempotent(self, resolver):
        osc = _osc(raw=_payload(linuxSecurityModule="SELinux"))
        assert resolver.resolve(osc) == resolver.resolve(osc)

    def test_fresh_mapping_each_call(self, resolver):
        osc = _osc()
        first = resolver.resolve(osc)
        first["LinuxSecurityModule"] = "mutated"
        assert resolver.resolve(osc) == {"LinuxSecurityModule": "AppArmor"}

    def test_concurrent_resolves_share_scheme(self, resolver):
        oscs = [
            _osc(raw=_payload(linuxSecurityModule=f"lsm-{i}")) for i in range(32)
        ]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(resolver.resolve, oscs))
        assert results == [{"LinuxSecurityModule": f"lsm-{i}"} for i in range(32)]


# ── decode failures ──────────────────────────────────────────────────


class TestDecodeFailure:
    def test_truncated_payload(self, resolver):
        raw = _payload(linuxSecurityModule="SELinux")[:-10]
        with pytest.raises(ProviderConfigError, match="failed to decode provider config"):
            resolver.resolve(_osc(raw=raw))

    def test_schema_mismatch(self, resolver):
        with pytest.raises(ProviderConfigError):
            resolver.resolve(_osc(raw=_payload(unknownField=True)))

    def test_unregistered_kind(self, resolver):
        raw = json.dumps({"apiVersion": "v1", "kind": "ConfigMap"}).encode("utf-8")
        with pytest.raises(ProviderConfigError, match="no kind"):
            resolver.resolve(_osc(raw=raw))

    @pytest.mark.parametrize(
        "raw",
        [
            b'{"apiVersion": ["x"], "kind": "OperatingSystemConfiguration"}',
            b'{"apiVersion": "v1", "kind": {"a": 1}}',
        ],
    )
    def test_unhashable_api_version_or_kind(self, resolver, raw):
        with pytest.raises(ProviderConfigError, match="must be strings"):
            resolver.resolve(_osc(raw=raw))

    def test_empty_raw_payload(self, resolver):
        with pytest.raises(ProviderConfigError):
            resolver.resolve(_osc(raw=b""))

    def test_cause_chained(self, resolver):
        with pytest.raises(ProviderConfigError) as excinfo:
            resolver.resolve(_osc(raw=b"{"))
        assert excinfo.value.__cause__ is not None
        assert str(excinfo.value.__cause__) in str(excinfo.value)


# ── generator construction ───────────────────────────────────────────


class TestGeneratorWiring:
    def test_packaged_template_loads(self):
        text = load_cloud_init_template()
        assert text.startswith("#!/bin/bash")
        assert "LinuxSecurityModule" in text

    def test_new_generator_defaults(self):
        g = new_cloud_init_generator()
        assert isinstance(g, CloudInitGenerator)
        assert g.units_path == DEFAULT_UNITS_PATH
        assert g.cmd == CMD
        assert isinstance(g.values_provider, LinuxSecurityModuleResolver)

    def test_injected_scheme_used(self):
        scheme = new_scheme(add_to_scheme)
        g = new_cloud_init_generator(scheme=scheme)
        assert g.values_provider.decoder is scheme

    def test_broken_template_raises(self):
        with pytest.raises(TemplateSyntaxError):
            new_cloud_init_generator(template_text="{% if Bootstrap %}unterminated")

    def test_shared_generator_built_once(self):
        cloud_init_generator.cache_clear()
        try:
            assert cloud_init_generator() is cloud_init_generator()
        finally:
            cloud_init_generator.cache_clear()

    def test_initialization_failure_exits(self, monkeypatch):
        def broken(*args, **kwargs):
            raise TemplateSyntaxError("boom", 1)

        monkeypatch.setattr(gen_mod, "new_cloud_init_generator", broken)
        cloud_init_generator.cache_clear()
        try:
            with pytest.raises(SystemExit) as excinfo:
                cloud_init_generator()
            assert excinfo.value.code == 1
        finally:
            cloud_init_generator.cache_clear()
