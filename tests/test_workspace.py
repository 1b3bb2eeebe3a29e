"""Tests for workspace project discovery."""

import os

from reclaim.workspace import find_projects, inspect_project, scan_workspaces


def allocated(path):
    return os.stat(path).st_blocks * 512


def make_project(path, markers=(), dirs=None):
    """Create a project with marker files and cleanable directories (sizes in KB)."""
    path.mkdir(parents=True, exist_ok=True)
    for marker in markers:
        (path / marker).write_text("{}")
    for name, size in (dirs or {}).items():
        d = path / name
        d.mkdir(parents=True, exist_ok=True)
        if size:
            (d / "blob").write_bytes(b"x" * size * 1024)
    return path


class TestFindProjects:
    def test_marker_file(self, tmp_path):
        make_project(tmp_path / "app", ["package.json"])
        assert find_projects(tmp_path) == [tmp_path / "app"]

    def test_xcodeproj_directory_marker(self, tmp_path):
        make_project(tmp_path / "ios", dirs={"MyApp.xcodeproj": 0})
        assert find_projects(tmp_path) == [tmp_path / "ios"]

    def test_cabal_suffix_marker(self, tmp_path):
        make_project(tmp_path / "lib", ["lib.cabal"])
        assert find_projects(tmp_path) == [tmp_path / "lib"]

    def test_nested_project_not_reported(self, tmp_path):
        outer = make_project(tmp_path / "mono", ["package.json"])
        make_project(outer / "packages" / "inner", ["package.json"])
        assert find_projects(tmp_path) == [outer]

    def test_hidden_directories_skipped(self, tmp_path):
        make_project(tmp_path / ".secret" / "app", ["package.json"])
        make_project(tmp_path / "visible", ["go.mod"])
        assert find_projects(tmp_path) == [tmp_path / "visible"]

    def test_respects_max_depth(self, tmp_path):
        # root is depth 1, a is 2, b is 3
        make_project(tmp_path / "a" / "b", ["Cargo.toml"])
        assert find_projects(tmp_path, max_depth=2) == []
        assert find_projects(tmp_path, max_depth=3) == [tmp_path / "a" / "b"]

    def test_symlinked_project_not_followed(self, tmp_path):
        real = make_project(tmp_path / "elsewhere" / "app", ["package.json"])
        root = tmp_path / "root"
        root.mkdir()
        (root / "linked").symlink_to(real)
        assert find_projects(root) == []

    def test_sorted_discovery(self, tmp_path):
        for name in ["zeta", "alpha", "mid"]:
            make_project(tmp_path / name, ["Makefile"])
        assert [p.name for p in find_projects(tmp_path)] == ["alpha", "mid", "zeta"]


class TestInspectProject:
    def test_node_project(self, tmp_path):
        project = make_project(
            tmp_path / "app", ["package.json"], {"node_modules": 2, "src": 1}
        )
        record = inspect_project(project)

        assert record is not None
        assert record.name == "app"
        assert record.ecosystems == ["node-js-ts"]
        assert [d.name for d in record.clean_dirs] == ["node_modules"]
        assert record.clean_dirs[0].size_bytes == allocated(project / "node_modules" / "blob")
        assert record.total_bytes == record.clean_dirs[0].size_bytes

    def test_union_of_ecosystems(self, tmp_path):
        project = make_project(
            tmp_path / "app",
            ["package.json", "Makefile", "requirements.txt"],
            {"node_modules": 10, "out": 20, "venv": 30, "build": 40},
        )
        record = inspect_project(project)

        assert record.ecosystems == ["node-js-ts", "python", "generic"]
        assert [d.name for d in record.clean_dirs] == ["node_modules", "build", "out", "venv"]

    def test_shared_dir_name_measured_once(self, tmp_path):
        project = make_project(
            tmp_path / "app", ["pom.xml", "Makefile"], {"build": 64}
        )
        record = inspect_project(project)
        assert [d.name for d in record.clean_dirs] == ["build"]
        assert record.total_bytes == allocated(project / "build" / "blob")

    def test_empty_clean_dirs_dropped(self, tmp_path):
        project = make_project(tmp_path / "app", ["package.json"], {"node_modules": 0})
        assert inspect_project(project) is None

    def test_no_clean_dirs(self, tmp_path):
        project = make_project(tmp_path / "app", ["go.mod"])
        assert inspect_project(project) is None

    def test_clean_dir_as_file_ignored(self, tmp_path):
        project = make_project(tmp_path / "app", ["Cargo.toml"])
        (project / "target").write_bytes(b"x" * 100)
        assert inspect_project(project) is None

    def test_not_a_project(self, tmp_path):
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "x").write_bytes(b"x" * 10)
        assert inspect_project(tmp_path) is None


class TestScanWorkspaces:
    def test_scenario_node_modules(self, tmp_path):
        """A JS project with a populated node_modules is reported with its size."""
        root = tmp_path / "Projects"
        make_project(root / "web", ["package.json"], {"node_modules": 4})

        projects = scan_workspaces(roots=[str(root)])

        assert len(projects) == 1
        assert projects[0].path == str(root / "web")
        assert projects[0].clean_dirs[0].path == str(root / "web" / "node_modules")
        assert projects[0].clean_dirs[0].size_bytes == allocated(root / "web" / "node_modules" / "blob")

    def test_projects_without_reclaimable_space_dropped(self, tmp_path):
        make_project(tmp_path / "empty", ["package.json"], {"node_modules": 0})
        make_project(tmp_path / "bare", ["Cargo.toml"])
        make_project(tmp_path / "full", ["Cargo.toml"], {"target": 10})

        assert [p.name for p in scan_workspaces(roots=[str(tmp_path)])] == ["full"]

    def test_missing_roots_ignored(self, tmp_path):
        make_project(tmp_path / "real" / "app", ["go.mod"], {"bin": 5})
        projects = scan_workspaces(roots=[str(tmp_path / "missing"), str(tmp_path / "real")])
        assert [p.name for p in projects] == ["app"]

    def test_overlapping_roots_report_once(self, tmp_path):
        docs = tmp_path / "Documents"
        make_project(docs / "code" / "app", ["package.json"], {"dist": 10})

        projects = scan_workspaces(roots=[str(docs), str(docs / "code"), str(docs)])
        assert [p.path for p in projects] == [str(docs / "code" / "app")]

    def test_root_inside_project_skipped(self, tmp_path):
        mono = make_project(tmp_path / "mono", ["package.json"], {"node_modules": 10})
        make_project(mono / "packages" / "inner", ["package.json"], {"node_modules": 10})

        projects = scan_workspaces(roots=[str(tmp_path), str(mono / "packages")])
        assert [p.name for p in projects] == ["mono"]

    def test_discovery_order_follows_roots(self, tmp_path):
        make_project(tmp_path / "b" / "second", ["Makefile"], {"out": 1})
        make_project(tmp_path / "a" / "first", ["Makefile"], {"out": 1})

        projects = scan_workspaces(roots=[str(tmp_path / "b"), str(tmp_path / "a")])
        assert [p.name for p in projects] == ["second", "first"]

    def test_idempotent(self, tmp_path):
        make_project(tmp_path / "x", ["package.json"], {"node_modules": 10, "dist": 5})
        make_project(tmp_path / "y", ["pyproject.toml"], {"__pycache__": 3})

        first = scan_workspaces(roots=[str(tmp_path)])
        second = scan_workspaces(roots=[str(tmp_path)])
        assert first == second
