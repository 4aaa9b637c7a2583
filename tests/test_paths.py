"""Tests for managed-path containment."""

import os

import pytest

from claude_agents.errors import PathEscapeError
from claude_agents.paths import is_within_any_root, validate_managed_path
from tests.conftest import seed_all


class TestValidateManagedPath:
    def test_accepts_root_itself(self, directories):
        roots = directories.managed_roots
        assert validate_managed_path(directories.agents_dir, roots) == directories.agents_dir

    def test_accepts_nested_path_that_does_not_exist(self, directories):
        dest = directories.tools_dir / "deploy" / "k8s.md"
        assert not dest.exists()
        assert validate_managed_path(dest, directories.managed_roots) == dest

    def test_rejects_system_file(self, directories):
        with pytest.raises(PathEscapeError) as exc:
            validate_managed_path("/etc/passwd", directories.managed_roots)
        assert "/etc/passwd" in str(exc.value)

    def test_rejects_traversal_out_of_root(self, directories):
        escape = str(directories.agents_dir) + "/../../escape"
        with pytest.raises(PathEscapeError):
            validate_managed_path(escape, directories.managed_roots)

    def test_rejects_relative_escape(self, directories, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(PathEscapeError):
            validate_managed_path("../../escape", directories.managed_roots)

    def test_rejects_sibling_sharing_prefix(self, directories):
        sibling = str(directories.agents_dir) + "-evil/x.md"
        with pytest.raises(PathEscapeError):
            validate_managed_path(sibling, directories.managed_roots)

    def test_rejects_claude_dir_parent(self, directories):
        with pytest.raises(PathEscapeError):
            validate_managed_path(directories.claude_dir / "settings.json", directories.managed_roots)

    def test_tilde_in_name_is_literal(self, directories):
        path = directories.agents_dir / "~x.md"
        assert validate_managed_path(path, directories.managed_roots) == path

    def test_env_var_in_name_is_literal(self, directories, monkeypatch):
        monkeypatch.setenv("X", "../../..")
        path = directories.agents_dir / "$X-agent.md"
        assert validate_managed_path(path, directories.managed_roots) == path

    def test_relative_tilde_is_not_home(self, directories, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(PathEscapeError):
            validate_managed_path("~/.claude/agents/dLabs-x.md", directories.managed_roots)

    def test_does_not_resolve_symlinked_parent(self, directories, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        directories.agents_dir.mkdir(parents=True)
        link = directories.agents_dir / "sub"
        os.symlink(outside, link)
        # Literal check: the link lives inside the root, whatever it points at.
        assert is_within_any_root(link / "file.md", directories.managed_roots)


class TestBuilderContainment:
    def test_every_planned_destination_is_managed(self, directories, registry, builder):
        seed_all(directories, registry)
        for collection in registry:
            for m in builder.build_mappings(collection.key):
                assert validate_managed_path(m.destination, directories.managed_roots) == m.destination
                assert m.source.is_absolute()
                assert m.destination.is_absolute()
