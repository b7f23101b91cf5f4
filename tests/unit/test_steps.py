"""Unit tests for the setup steps."""

import pytest
from unittest.mock import patch

from firejail_installer.lib.pkg import PackageManager, UnsupportedPlatformError
from firejail_installer.state_store import ensure_defaults
from firejail_installer.steps import (
    BuildFromSourceStep,
    DetectPackageManagerStep,
    FetchProfilesStep,
    InstallFirejailStep,
    WhitelistProfilesStep,
)


def state_with(**config):
    state = ensure_defaults({})
    state["config"].update({"sudo": None}, **config)
    return state


class TestDetectPackageManagerStep:
    """Tests for DetectPackageManagerStep."""

    def test_records_host(self):
        """The detected manager is stored in state, not a global."""
        with patch(
            "firejail_installer.steps.step_10_detect_package_manager.detect_package_manager",
            return_value=PackageManager.DNF,
        ):
            state = DetectPackageManagerStep().run(state_with())
        assert state["host"] == {"package_manager": "dnf", "family": "Fedora-based"}

    def test_unsupported_propagates(self):
        """Unsupported hosts stop the pipeline."""
        with patch(
            "firejail_installer.steps.step_10_detect_package_manager.detect_package_manager",
            side_effect=UnsupportedPlatformError("none"),
        ):
            with pytest.raises(UnsupportedPlatformError):
                DetectPackageManagerStep().run(state_with())


class TestInstallFirejailStep:
    """Tests for InstallFirejailStep."""

    MOD = "firejail_installer.steps.step_20_install_firejail"

    def test_skips_when_installed(self):
        """An existing firejail binary short-circuits the install."""
        with patch(f"{self.MOD}.command_exists", return_value=True), patch(f"{self.MOD}.install_firejail") as inst:
            state = InstallFirejailStep().run(state_with())
        inst.assert_not_called()
        assert state["execution"]["decisions"]["install_firejail"] == "skipped"

    def test_installs_with_detected_manager(self):
        """The install plan for the stored manager is run."""
        state = state_with(sudo="sudo", dry_run=True)
        state["host"]["package_manager"] = "zypper"
        with patch(f"{self.MOD}.command_exists", return_value=False), patch(
            f"{self.MOD}.install_firejail", return_value=[["sudo", "zypper"]]
        ) as inst:
            state = InstallFirejailStep().run(state)
        inst.assert_called_once_with("zypper", sudo="sudo", dry_run=True)
        assert state["execution"]["decisions"]["install_firejail"]["package_manager"] == "zypper"

    def test_requires_detection(self):
        """Running out of order is an error."""
        with patch(f"{self.MOD}.command_exists", return_value=False):
            with pytest.raises(RuntimeError, match="package_manager"):
                InstallFirejailStep().run(state_with())


class TestBuildFromSourceStep:
    """Tests for BuildFromSourceStep."""

    MOD = "firejail_installer.steps.step_30_build_from_source"

    def test_disabled(self):
        """build_from_source: false switches the step off."""
        assert BuildFromSourceStep().enabled(state_with(build_from_source=False)) is False
        assert BuildFromSourceStep().enabled(state_with()) is True

    def test_enabled(self):
        """Repo and configure flags come from config."""
        with patch(f"{self.MOD}.build_from_source") as build:
            BuildFromSourceStep().run(state_with(configure_flags=["--enable-apparmor"], firejail_source_repo="r"))
        build.assert_called_once_with("r", configure_flags=["--enable-apparmor"], sudo=None, dry_run=False)


class TestFetchProfilesStep:
    """Tests for FetchProfilesStep."""

    MOD = "firejail_installer.steps.step_40_fetch_profiles"

    def test_disabled(self):
        """fetch_profiles: false switches the step off."""
        assert FetchProfilesStep().enabled(state_with(fetch_profiles=False)) is False
        assert FetchProfilesStep().enabled(state_with()) is True

    def test_enabled(self):
        """The profile repo is copied into firejail_dir."""
        with patch(f"{self.MOD}.fetch_profiles", return_value=["/x/a.profile"]) as fetch:
            state = FetchProfilesStep().run(state_with(firejail_dir="/x", profiles_repo="p"))
        fetch.assert_called_once_with("p", "/x", sudo=None, dry_run=False)
        assert state["execution"]["decisions"]["fetch_profiles"] == {"repo": "p", "installed": 1}


class TestWhitelistProfilesStep:
    """Tests for WhitelistProfilesStep."""

    def test_patches_profiles_and_modes(self, tmp_path):
        """Whitelist entries and path modes are applied from config."""
        profile = tmp_path / "ssh.profile"
        profile.write_text("include /etc/firejail/common.inc\n")
        missing = str(tmp_path / "no-such-dir")

        state = state_with(
            firejail_dir=str(tmp_path),
            whitelist={str(profile): ["whitelist /etc/ssh"]},
            path_modes={missing: "755"},
        )
        state = WhitelistProfilesStep().run(state)

        assert profile.read_text().endswith("whitelist /etc/ssh\n")
        decisions = state["execution"]["decisions"]["whitelist"]
        assert decisions == [
            {"profile": str(profile), "created": False, "added": ["whitelist /etc/ssh"], "present": []}
        ]
        assert state["execution"]["warnings"] == [{"step": "50_whitelist_profiles", "missing_paths": [missing]}]
