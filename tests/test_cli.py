"""Tests for vmstart.cli module."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from vmstart import cli
from vmstart.exceptions import PersistenceLoadError, PersistenceSaveError, StartError
from vmstart.models import Config
from vmstart.resolver import Resolution
from vmstart.store import ConfigStore


@pytest.fixture
def provisioner():
    return MagicMock()


@pytest.fixture
def on_linux(linux_host):
    with patch("vmstart.cli.detect_platform", return_value=linux_host):
        yield linux_host


@pytest.fixture
def on_macos(macos_host):
    with patch("vmstart.cli.detect_platform", return_value=macos_host):
        yield macos_host


def started_config(provisioner) -> Config:
    provisioner.start.assert_called_once()
    return provisioner.start.call_args[0][0]


class TestBuildParser:
    def test_unset_flags_are_absent(self, linux_host):
        args = cli.build_parser(linux_host).parse_args(["start"])
        values = vars(args)
        assert values["profile"] == "default"
        assert values["dry_run"] is False
        for dest in ("runtime", "cpu", "memory", "disk", "arch", "mount", "dns", "ssh_agent", "env"):
            assert dest not in values

    def test_supplied_flags_are_present(self, linux_host):
        args = cli.build_parser(linux_host).parse_args(
            ["start", "work", "-c", "2", "-k", "--no-ssh-agent", "-v", "/a", "-v", "/b:w", "-e", "A=1"]
        )
        assert args.profile == "work"
        assert args.cpu == 2
        assert args.with_kubernetes is True
        assert args.ssh_agent is False
        assert args.mount == ["/a", "/b:w"]
        assert args.env == ["A=1"]

    def test_network_flags_only_on_macos(self, linux_host, macos_host):
        args = cli.build_parser(macos_host).parse_args(["start", "--no-network-address"])
        assert args.network_address is False
        with pytest.raises(SystemExit):
            cli.build_parser(linux_host).parse_args(["start", "--network-address"])

    def test_hidden_flags_not_in_help(self, linux_host, capsys):
        with pytest.raises(SystemExit):
            cli.build_parser(linux_host).parse_args(["start", "--help"])
        out = capsys.readouterr().out
        assert "--kubernetes-version" not in out
        assert "--env" not in out
        assert "--with-kubernetes" in out


class TestLoadPersisted:
    def test_not_found_is_absent_without_error(self, store):
        assert cli.load_persisted(store) == (None, None)

    def test_corrupt_returns_error(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{{{")
        persisted, error = cli.load_persisted(store)
        assert persisted is None
        assert isinstance(error, PersistenceLoadError)

    def test_loaded(self, store, persisted_config):
        store.save(persisted_config)
        assert cli.load_persisted(store) == (persisted_config, None)


class TestReportResolution:
    def test_creation_override_warning(self, persisted_config):
        resolution = Resolution(
            config=Config(disk=200, runtime="containerd"),
            bootstrap=False,
            creation_overrides=("disk",),
        )
        with patch("vmstart.cli.log") as mock_log:
            cli.report_resolution(resolution, persisted_config)
        mock_log.assert_any_call(
            "WARN", "--disk changed from 100 to 200; it only takes effect when the VM is created"
        )
        mock_log.assert_called_with("INFO", "using containerd runtime")

    def test_bootstrap_is_quiet(self):
        with patch("vmstart.cli.log") as mock_log:
            cli.report_resolution(Resolution(config=Config(), bootstrap=True), None)
        mock_log.assert_not_called()


class TestShowConfig:
    def test_nested_fields(self, persisted_config, capsys):
        cli.show_config(persisted_config)
        out = capsys.readouterr().out
        assert "  runtime: containerd" in out
        assert "  mounts: /Users/dev/src:w, /tmp/share" in out
        assert "  kubernetes:" in out
        assert "    version: v1.24.0" in out


@pytest.mark.usefixtures("on_linux")
class TestMain:
    def test_first_start_saves_config(self, provisioner):
        rc = cli.main(["start", "--cpu", "4", "--runtime", "containerd"], provisioner=provisioner)
        assert rc == 0
        cfg = started_config(provisioner)
        assert cfg.cpu == 4
        saved = ConfigStore("default").load()
        assert saved == cfg

    def test_second_start_carries_forward(self, provisioner):
        first = ["start", "--cpu", "4", "--runtime", "containerd", "--disk", "80"]
        assert cli.main(first, provisioner=MagicMock()) == 0
        with patch("vmstart.cli.log") as mock_log:
            rc = cli.main(["start", "--memory", "6"], provisioner=provisioner)
        assert rc == 0
        cfg = started_config(provisioner)
        assert cfg.cpu == 4
        assert cfg.runtime == "containerd"
        assert cfg.disk == 80
        assert cfg.memory == 6
        mock_log.assert_any_call("INFO", "using containerd runtime")

    def test_explicit_creation_flag_overrides_and_warns(self, provisioner):
        ConfigStore("default").save(Config(disk=60))
        with patch("vmstart.cli.log") as mock_log:
            rc = cli.main(["start", "--disk", "100"], provisioner=provisioner)
        assert rc == 0
        assert started_config(provisioner).disk == 100
        mock_log.assert_any_call(
            "WARN", "--disk changed from 60 to 100; it only takes effect when the VM is created"
        )

    def test_env_is_not_carried_forward(self, provisioner):
        assert cli.main(["start", "-e", "A=1"], provisioner=MagicMock()) == 0
        assert ConfigStore("default").load().env == {"A": "1"}
        cli.main(["start"], provisioner=provisioner)
        assert started_config(provisioner).env == {}

    def test_profiles_are_independent(self, provisioner, isolated_config_home):
        assert cli.main(["start", "work", "--cpu", "8"], provisioner=MagicMock()) == 0
        cli.main(["start"], provisioner=provisioner)
        assert started_config(provisioner).cpu == 2
        assert (isolated_config_home / "work" / "vmstart.yaml").exists()

    def test_corrupt_store_warns_and_uses_defaults(self, provisioner, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("cpu: [oops\n")
        with patch("vmstart.cli.log") as mock_log:
            rc = cli.main(["start"], provisioner=provisioner)
        assert rc == 0
        assert started_config(provisioner) == Config(arch="x86_64")
        warnings = [call.args[1] for call in mock_log.call_args_list if call.args[0] == "WARN"]
        assert warnings[0].startswith("config load failed: invalid YAML")
        assert warnings[1] == "reverting to default settings"

    def test_undecodable_store_warns_and_uses_defaults(self, provisioner, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_bytes(b"runtime: \xff\xfe docker\n")
        with patch("vmstart.cli.log") as mock_log:
            rc = cli.main(["start"], provisioner=provisioner)
        assert rc == 0
        assert started_config(provisioner) == Config(arch="x86_64")
        warnings = [call.args[1] for call in mock_log.call_args_list if call.args[0] == "WARN"]
        assert warnings[0].startswith("config load failed: cannot decode")
        assert warnings[1] == "reverting to default settings"

    def test_start_failure_does_not_save(self, provisioner, store, persisted_config):
        store.save(persisted_config)
        provisioner.start.side_effect = StartError("qemu exited")
        with patch("vmstart.cli.log") as mock_log:
            rc = cli.main(["start", "--cpu", "6"], provisioner=provisioner)
        assert rc == 1
        mock_log.assert_called_with("ERROR", "qemu exited")
        assert store.load() == persisted_config

    def test_unexpected_start_error(self, provisioner, store):
        provisioner.start.side_effect = RuntimeError("boom")
        with patch("vmstart.cli.log") as mock_log:
            rc = cli.main(["start"], provisioner=provisioner)
        assert rc == 1
        mock_log.assert_any_call("ERROR", "Unexpected error: boom")
        assert not store.path.exists()

    def test_save_failure_after_start(self, provisioner):
        with (
            patch("vmstart.store.ConfigStore.save", side_effect=PersistenceSaveError("read-only fs")),
            patch("vmstart.cli.log") as mock_log,
        ):
            rc = cli.main(["start"], provisioner=provisioner)
        assert rc == 1
        provisioner.start.assert_called_once()
        mock_log.assert_any_call("ERROR", "VM started but its configuration was not saved: read-only fs")

    def test_invalid_flag_returns_1(self, provisioner):
        with patch("vmstart.cli.log") as mock_log:
            rc = cli.main(["start", "--runtime", "podman"], provisioner=provisioner)
        assert rc == 1
        provisioner.start.assert_not_called()
        level, message = mock_log.call_args[0]
        assert level == "ERROR"
        assert "Unsupported runtime 'podman'" in message

    @pytest.mark.parametrize(
        "profile, expected",
        [
            ("", "Profile name must not be empty"),
            ("../..", "Invalid profile name '../..'"),
            ("a/b", "Invalid profile name 'a/b'"),
        ],
    )
    def test_invalid_profile_returns_1(self, provisioner, isolated_config_home, profile, expected):
        with patch("vmstart.cli.log") as mock_log:
            rc = cli.main(["start", profile], provisioner=provisioner)
        assert rc == 1
        provisioner.start.assert_not_called()
        level, message = mock_log.call_args[0]
        assert level == "ERROR"
        assert message.startswith(expected)
        assert not isolated_config_home.exists()

    def test_dry_run_neither_starts_nor_saves(self, provisioner, store, capsys):
        rc = cli.main(["start", "--dry-run", "--cpu", "3"], provisioner=provisioner)
        assert rc == 0
        provisioner.start.assert_not_called()
        assert not store.path.exists()
        assert "cpu: 3" in capsys.readouterr().out

    def test_show_config(self, provisioner, store, persisted_config, capsys):
        store.save(persisted_config)
        rc = cli.main(["start", "--show-config"], provisioner=provisioner)
        assert rc == 0
        provisioner.start.assert_not_called()
        out = capsys.readouterr().out
        assert "runtime: containerd" in out
        assert "cpu: 4" in out

    def test_default_provisioner(self, store):
        with patch("vmstart.cli.SummaryProvisioner") as mock_cls:
            rc = cli.main(["start"])
        assert rc == 0
        mock_cls.return_value.start.assert_called_once()
        assert store.path.exists()


@pytest.mark.usefixtures("on_macos")
class TestMainMacOS:
    def test_network_flags_carried_forward(self, provisioner):
        assert cli.main(["start", "--no-network-address"], provisioner=MagicMock()) == 0
        cli.main(["start"], provisioner=provisioner)
        assert started_config(provisioner).network.address is False
