"""Unit tests for source builds and profile fetching."""

import os
import stat

import pytest
from unittest.mock import patch

from firejail_installer.lib.command import CommandError
from firejail_installer.lib.profiles import ProfileError
from firejail_installer.lib.source import build_from_source, fetch_profiles, git_clone


class TestGitClone:
    """Tests for git_clone()."""

    def test_shallow_clone(self):
        """Clones are shallow."""
        with patch("firejail_installer.lib.source.run_cmd") as run_cmd:
            git_clone("https://example.invalid/r.git", "/tmp/x", dry_run=True)
        run_cmd.assert_called_once_with(
            ["git", "clone", "--depth", "1", "https://example.invalid/r.git", "/tmp/x"], dry_run=True
        )


class TestBuildFromSource:
    """Tests for build_from_source()."""

    def test_build_sequence(self, tmp_path):
        """clone, configure, make, then privileged make install-strip."""
        work = tmp_path / "work"
        work.mkdir()
        with patch("firejail_installer.lib.source.tempfile.mkdtemp", return_value=str(work)), patch(
            "firejail_installer.lib.source.run_cmd"
        ) as run_cmd:
            build_from_source(
                "https://github.com/netblue30/firejail.git",
                configure_flags=["--enable-apparmor", "--enable-selinux"],
                sudo="sudo",
            )

        src = str(work / "firejail")
        argvs = [c.args[0] for c in run_cmd.call_args_list]
        assert argvs == [
            ["git", "clone", "--depth", "1", "https://github.com/netblue30/firejail.git", src],
            ["./configure", "--enable-apparmor", "--enable-selinux"],
            ["make"],
            ["sudo", "make", "install-strip"],
        ]
        assert all(c.kwargs.get("cwd") == src for c in run_cmd.call_args_list[1:])
        assert not work.exists()

    def test_work_dir_removed_on_failure(self, tmp_path):
        """A failed make still cleans up the clone."""
        work = tmp_path / "work"
        work.mkdir()

        def fake_run(argv, **kwargs):
            if argv == ["make"]:
                raise CommandError(argv, 2, "boom")

        with patch("firejail_installer.lib.source.tempfile.mkdtemp", return_value=str(work)), patch(
            "firejail_installer.lib.source.run_cmd", side_effect=fake_run
        ):
            with pytest.raises(CommandError):
                build_from_source("repo", configure_flags=[])

        assert not work.exists()


def fake_profile_repo(*names):
    def clone(url, dest, dry_run=False):
        os.makedirs(dest)
        for n in names:
            with open(os.path.join(dest, n), "w") as f:
                f.write(f"# {n}\n")

    return clone


class TestFetchProfiles:
    """Tests for fetch_profiles()."""

    def test_copies_profiles_and_common_inc(self, tmp_path):
        """*.profile and common.inc land in the firejail dir with mode 644."""
        dest = tmp_path / "etc-firejail"
        clone = fake_profile_repo("ssh.profile", "nginx.profile", "common.inc", "README.md")

        with patch("firejail_installer.lib.source.git_clone", side_effect=clone):
            installed = fetch_profiles("repo", str(dest))

        assert sorted(os.path.basename(p) for p in installed) == ["common.inc", "nginx.profile", "ssh.profile"]
        assert not (dest / "README.md").exists()
        for p in installed:
            assert stat.S_IMODE(os.stat(p).st_mode) == 0o644

    def test_missing_common_inc_is_fatal(self, tmp_path):
        """Without common.inc the fetch fails with ProfileError."""
        dest = tmp_path / "etc-firejail"
        with patch("firejail_installer.lib.source.git_clone", side_effect=fake_profile_repo("ssh.profile")):
            with pytest.raises(ProfileError):
                fetch_profiles("repo", str(dest))

    def test_existing_common_inc_satisfies_check(self, tmp_path):
        """A common.inc already installed is enough."""
        dest = tmp_path / "etc-firejail"
        dest.mkdir()
        (dest / "common.inc").write_text("")
        with patch("firejail_installer.lib.source.git_clone", side_effect=fake_profile_repo("ssh.profile")):
            installed = fetch_profiles("repo", str(dest))
        assert [os.path.basename(p) for p in installed] == ["ssh.profile"]

    def test_sudo_copy(self, tmp_path):
        """With sudo, files are copied by `sudo cp` in one call."""
        dest = tmp_path / "etc-firejail"
        dest.mkdir()
        (dest / "common.inc").write_text("")
        with patch(
            "firejail_installer.lib.source.git_clone", side_effect=fake_profile_repo("a.profile", "common.inc")
        ), patch("firejail_installer.lib.source.run_cmd") as run_cmd, patch(
            "firejail_installer.lib.files.run_cmd"
        ) as chmod_cmd:
            fetch_profiles("repo", str(dest), sudo="sudo")

        argv = run_cmd.call_args.args[0]
        assert argv[:2] == ["sudo", "cp"]
        assert argv[-1] == str(dest)
        assert [os.path.basename(a) for a in argv[2:-1]] == ["a.profile", "common.inc"]
        assert [c.args[0][:3] for c in chmod_cmd.call_args_list] == [["sudo", "chmod", "644"]] * 2

    def test_dry_run(self, tmp_path):
        """dry_run clones nothing and skips the common.inc check."""
        dest = tmp_path / "etc-firejail"
        with patch("firejail_installer.lib.source.run_cmd") as run_cmd:
            assert fetch_profiles("repo", str(dest), dry_run=True) == []
        assert run_cmd.call_args.kwargs["dry_run"] is True
        assert not dest.exists()
