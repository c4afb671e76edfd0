"""Shared test fixtures."""

from __future__ import annotations

import pytest

from vmstart.host import PlatformInfo
from vmstart.models import Config, Kubernetes, Network
from vmstart.store import ConfigStore


@pytest.fixture(autouse=True)
def isolated_config_home(tmp_path, monkeypatch):
    """Keep every store created during a test under tmp_path."""
    home = tmp_path / "vmstart-home"
    monkeypatch.setattr("vmstart.store.CONFIG_HOME", home)
    return home


@pytest.fixture
def linux_host() -> PlatformInfo:
    return PlatformInfo(system="linux", arch="x86_64")


@pytest.fixture
def macos_host() -> PlatformInfo:
    return PlatformInfo(system="darwin", arch="x86_64")


@pytest.fixture
def invocation_config() -> Config:
    """Built-in defaults on an x86_64 host, no flags applied."""
    return Config(arch="x86_64")


@pytest.fixture
def persisted_config() -> Config:
    """A previously saved config where every field differs from the defaults."""
    return Config(
        runtime="containerd",
        cpu=4,
        cpu_type="host",
        memory=8,
        disk=100,
        arch="aarch64",
        mounts=("/Users/dev/src:w", "/tmp/share"),
        forward_agent=True,
        dns=("1.1.1.1",),
        network=Network(address=False, user_mode=False),
        kubernetes=Kubernetes(enabled=True, version="v1.24.0"),
        env={"FOO": "bar"},
    )


@pytest.fixture
def store(isolated_config_home) -> ConfigStore:
    return ConfigStore("default", home=isolated_config_home)
