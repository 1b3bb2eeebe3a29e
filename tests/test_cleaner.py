"""Tests for deletion and selection."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from reclaim.cleaner import (
    delete_paths,
    delete_target,
    is_path_safe,
    remove_path,
    select_applications,
    select_installers,
    select_project_dirs,
    uninstall_applications,
)
from reclaim.models import (
    ApplicationRecord,
    CleanableDir,
    DeletionTarget,
    InstallerRecord,
    ProjectRecord,
)


def target(path, size=0, label=None):
    return DeletionTarget(path=str(path), label=label or Path(path).name, size_bytes=size)


class TestIsPathSafe:
    def test_blocked_roots(self):
        assert not is_path_safe(Path("/"))
        assert not is_path_safe(Path("/Applications"))
        assert not is_path_safe(Path("/System"))
        assert not is_path_safe(Path.home())
        assert not is_path_safe(Path.home() / "Downloads")
        assert not is_path_safe(Path.home() / "Projects")

    def test_trailing_slash_still_blocked(self):
        assert not is_path_safe(Path("/Applications/"))
        assert not is_path_safe(Path("/usr/../usr"))

    def test_children_allowed(self):
        assert is_path_safe(Path("/Applications/Foo.app"))
        assert is_path_safe(Path.home() / "Downloads" / "setup.dmg")
        assert is_path_safe(Path.home() / "Projects" / "web" / "node_modules")


class TestRemovePath:
    def test_file(self, tmp_path):
        f = tmp_path / "a.dmg"
        f.write_text("x")
        remove_path(f)
        assert not f.exists()

    def test_directory_tree(self, tmp_path):
        d = tmp_path / "node_modules"
        (d / "pkg" / "lib").mkdir(parents=True)
        (d / "pkg" / "lib" / "index.js").write_text("x")
        remove_path(d)
        assert not d.exists()

    def test_symlink_removes_link_only(self, tmp_path):
        real = tmp_path / "real"
        real.mkdir()
        (real / "keep.txt").write_text("x")
        link = tmp_path / "link"
        link.symlink_to(real)

        remove_path(link)
        assert not link.exists()
        assert (real / "keep.txt").exists()

    def test_missing_is_fine(self, tmp_path):
        remove_path(tmp_path / "gone")


class TestDeleteTarget:
    def test_deletes(self, tmp_path):
        f = tmp_path / "a.dmg"
        f.write_bytes(b"x" * 10)

        result = delete_target(target(f, 10))
        assert result.success
        assert result.bytes_freed == 10
        assert not f.exists()

    def test_dry_run_keeps_file(self, tmp_path):
        f = tmp_path / "a.dmg"
        f.write_bytes(b"x" * 10)

        result = delete_target(target(f, 10), dry_run=True)
        assert result.success
        assert result.dry_run
        assert result.bytes_freed == 10
        assert f.exists()

    def test_blocked_path(self):
        result = delete_target(target("/Applications", 10))
        assert not result.success
        assert "Blocked" in result.error

    def test_missing_path_counts_as_success(self, tmp_path):
        result = delete_target(target(tmp_path / "already-gone.dmg", 10))
        assert result.success

    def test_os_error_reported(self, tmp_path):
        f = tmp_path / "a.dmg"
        f.write_text("x")
        with patch("reclaim.cleaner.remove_path", side_effect=PermissionError("denied")):
            result = delete_target(target(f, 10))

        assert not result.success
        assert result.bytes_freed == 0
        assert "denied" in result.error


class TestDeletePaths:
    def test_batch(self, tmp_path):
        files = []
        for name in ["a.dmg", "b.pkg"]:
            f = tmp_path / name
            f.write_bytes(b"x" * 5)
            files.append(f)

        report = delete_paths([target(f, 5) for f in files])
        assert report.deleted == 2
        assert report.failed == 0
        assert report.bytes_freed == 10
        assert not any(f.exists() for f in files)

    def test_failure_does_not_stop_batch(self, tmp_path):
        good = tmp_path / "good.dmg"
        good.write_bytes(b"x" * 5)

        report = delete_paths([target("/Applications", 100), target(good, 5)])
        assert report.deleted == 1
        assert report.failed == 1
        assert report.bytes_freed == 5
        assert not good.exists()

    def test_progress_callback(self, tmp_path):
        calls = []
        delete_paths(
            [target(tmp_path / "a", label="A"), target(tmp_path / "b", label="B")],
            dry_run=True,
            progress_callback=lambda label, i, n: calls.append((label, i, n)),
        )
        assert calls == [("A", 1, 2), ("B", 2, 2)]

    def test_empty(self):
        report = delete_paths([])
        assert report.results == []


class TestUninstallApplications:
    def test_user_app_removed_directly(self, tmp_path):
        bundle = tmp_path / "Foo.app"
        (bundle / "Contents").mkdir(parents=True)
        app = ApplicationRecord(path=str(bundle), name="Foo", size_bytes=1024)

        with patch("reclaim.cleaner.subprocess.run") as mock_run:
            report = uninstall_applications([app])

        mock_run.assert_not_called()
        assert report.deleted == 1
        assert not bundle.exists()

    def test_admin_apps_single_privileged_call(self):
        apps = [
            ApplicationRecord(path="/Applications/Foo.app", name="Foo", size_bytes=100),
            ApplicationRecord(path="/Applications/Bar Baz.app", name="Bar Baz", size_bytes=50),
        ]
        ok = MagicMock(returncode=0, stdout="", stderr="")

        with patch("reclaim.cleaner.subprocess.run", return_value=ok) as mock_run:
            report = uninstall_applications(apps)

        assert mock_run.call_count == 1
        argv = mock_run.call_args[0][0]
        assert argv[0] == "/usr/bin/osascript"
        script = argv[2]
        assert "with administrator privileges" in script
        assert "/Applications/Foo.app" in script
        assert "'/Applications/Bar Baz.app'" in script
        assert report.deleted == 2
        assert report.bytes_freed == 150

    def test_admin_failure_fails_every_admin_app(self):
        apps = [
            ApplicationRecord(path="/Applications/Foo.app", name="Foo", size_bytes=100),
            ApplicationRecord(path="/Library/Input Methods/X.app", name="X", size_bytes=50),
        ]
        cancelled = MagicMock(returncode=1, stdout="", stderr="User canceled. (-128)")

        with patch("reclaim.cleaner.subprocess.run", return_value=cancelled):
            report = uninstall_applications(apps)

        assert report.deleted == 0
        assert report.failed == 2
        assert all("User canceled" in r.error for r in report.results)

    def test_admin_timeout(self):
        app = ApplicationRecord(path="/Applications/Foo.app", name="Foo", size_bytes=100)
        with patch(
            "reclaim.cleaner.subprocess.run",
            side_effect=subprocess.TimeoutExpired("osascript", 300),
        ):
            report = uninstall_applications([app])

        assert report.failed == 1
        assert "timed out" in report.results[0].error

    def test_dry_run_never_prompts(self):
        app = ApplicationRecord(path="/Applications/Foo.app", name="Foo", size_bytes=100)
        with patch("reclaim.cleaner.subprocess.run") as mock_run:
            report = uninstall_applications([app], dry_run=True)

        mock_run.assert_not_called()
        assert report.deleted == 1
        assert report.results[0].dry_run
        assert report.bytes_freed == 100


@pytest.fixture
def installers():
    return [
        InstallerRecord(path="/d/Firefox.dmg", size_bytes=300, source="Downloads", display_name="Firefox.dmg"),
        InstallerRecord(path="/d/Zoom.pkg", size_bytes=200, source="Downloads", display_name="Zoom.pkg"),
        InstallerRecord(
            path=f"/h/{'a' * 64}--slack.dmg", size_bytes=100, source="Homebrew", display_name="slack.dmg"
        ),
    ]


@pytest.fixture
def projects():
    return [
        ProjectRecord(
            name="web",
            path="/p/web",
            ecosystems=["node-js-ts"],
            clean_dirs=[
                CleanableDir(name="node_modules", path="/p/web/node_modules", size_bytes=2048),
                CleanableDir(name="dist", path="/p/web/dist", size_bytes=1024),
            ],
        ),
        ProjectRecord(
            name="api",
            path="/p/api",
            ecosystems=["rust"],
            clean_dirs=[CleanableDir(name="target", path="/p/api/target", size_bytes=4096)],
        ),
    ]


class TestSelection:
    def test_select_applications(self):
        apps = [
            ApplicationRecord(path="/Applications/Slack.app", name="Slack"),
            ApplicationRecord(path="/Applications/Zoom.app", name="zoom.us"),
        ]
        assert [a.name for a in select_applications(apps, ["slack"])] == ["Slack"]
        assert [a.name for a in select_applications(apps, ["/Applications/Zoom.app"])] == ["zoom.us"]
        assert len(select_applications(apps, None)) == 2
        assert select_applications(apps, []) == []

    def test_select_applications_no_substring_match(self):
        apps = [
            ApplicationRecord(path="/Applications/Slack.app", name="Slack"),
            ApplicationRecord(path="/Applications/Arc.app", name="Arc"),
            ApplicationRecord(path="/Applications/Zoom.app", name="zoom.us"),
        ]
        assert select_applications(apps, ["a"]) == []
        assert select_applications(apps, ["sla", "Applications"]) == []
        assert [a.name for a in select_applications(apps, ["ARC", "Zoom.us"])] == ["Arc", "zoom.us"]

    def test_select_installers(self, installers):
        targets = select_installers(installers, ["firefox", "SLACK"])
        assert [t.label for t in targets] == ["Firefox.dmg", "slack.dmg"]
        assert targets[1].path.endswith("--slack.dmg")
        assert targets[0].size_bytes == 300

    def test_select_all_installers(self, installers):
        assert len(select_installers(installers, None)) == 3

    def test_select_project_by_name(self, projects):
        targets = select_project_dirs(projects, ["web"])
        assert [t.path for t in targets] == ["/p/web/node_modules", "/p/web/dist"]
        assert targets[0].label == "[web] node_modules (2.0 KB)"

    def test_select_project_by_ecosystem(self, projects):
        targets = select_project_dirs(projects, ["rust"])
        assert [t.path for t in targets] == ["/p/api/target"]

    def test_select_single_dir_by_path(self, projects):
        targets = select_project_dirs(projects, ["/p/web/dist"])
        assert [t.path for t in targets] == ["/p/web/dist"]

    def test_restrict_dir_names(self, projects):
        targets = select_project_dirs(projects, None, dir_names=["node_modules", "target"])
        assert [t.path for t in targets] == ["/p/web/node_modules", "/p/api/target"]

    def test_no_match(self, projects):
        assert select_project_dirs(projects, ["nothing-here"]) == []
