"""Tests for install and remove orchestration."""

import os

import pytest

from claude_agents.installer import Installer
from claude_agents.remover import Remover
from claude_agents.symlinks import SymlinkManager
from tests.conftest import DLABS_FILES, WSHOBSON_COMMAND_FILES, seed_all, seed_collection


@pytest.fixture
def installer(ui, registry, directories, symlinks, builder, repositories):
    return Installer(ui, registry, directories, symlinks, builder, repositories)


@pytest.fixture
def remover(ui, registry, directories, symlinks):
    return Remover(ui, registry, directories, symlinks)


class TestInstaller:
    def test_install_local_collection(self, installer, directories, registry):
        seed_collection(directories, registry, "dlabs", DLABS_FILES)

        result = installer.install_component("dlabs")

        assert result.success
        assert result.operation.created_links == 5
        assert (directories.agents_dir / "dLabs-debugger.md").is_symlink()

    def test_missing_source_is_failed_result(self, installer, ui):
        result = installer.install_component("dlabs")
        assert not result.success
        assert "does not exist" in result.error
        assert ui.messages("error")

    def test_unknown_key_is_failed_result(self, installer):
        result = installer.install_component("bogus")
        assert not result.success
        assert "Unknown collection" in result.error

    def test_empty_source_warns(self, installer, directories, registry, ui):
        seed_collection(directories, registry, "dlabs", ["README.md"])
        result = installer.install_component("dlabs")
        assert result.success
        assert result.operation.total_files == 0
        assert any("No files found" in m for m in ui.messages("warn"))

    def test_install_components_clones_missing_repos(self, installer, runner, directories):
        results = installer.install_components(["awesome"])

        assert runner.commands[0][0][:3] == ["gh", "repo", "clone"]
        # The fake clone leaves an empty checkout: nothing to link, but no failure.
        assert results["awesome"].success
        assert directories.tools_dir.is_dir()

    def test_install_all(self, installer, directories, registry):
        seed_all(directories, registry)

        results = installer.install_all()

        assert list(results) == registry.keys()
        assert all(r.success for r in results.values())
        assert (directories.tools_dir / "deploy" / "k8s.md").is_symlink()
        assert (directories.commands_dir / "wshobson-feature.md").is_symlink()
        assert (directories.agents_dir / "frontend-a.md").is_symlink()

    def test_no_keys(self, installer, ui, directories):
        assert installer.install_components([]) == {}
        assert "No components selected. Exiting." in ui.messages("info")
        assert not directories.claude_dir.exists()

    def test_dry_run_writes_nothing(self, ui, registry, directories, builder, repositories):
        seed_collection(directories, registry, "dlabs", DLABS_FILES)
        dry = SymlinkManager(ui, directories, registry, dry_run=True)
        installer = Installer(ui, registry, directories, dry, builder, repositories)

        results = installer.install_components(["dlabs"])

        assert results["dlabs"].operation.dry_run_count == 5
        assert not directories.claude_dir.exists()

    def test_reinstall_skips_existing(self, installer, directories, registry):
        seed_collection(directories, registry, "dlabs", DLABS_FILES)
        installer.install_component("dlabs")
        second = installer.install_component("dlabs")
        assert second.operation.created_links == 0
        assert second.operation.skipped_files == 5

    def test_blocked_commands_dir_is_failed_result(self, installer, directories, registry):
        seed_collection(directories, registry, "wshobson_commands", WSHOBSON_COMMAND_FILES)
        directories.claude_dir.mkdir()
        directories.commands_dir.write_text("x")

        result = installer.install_component("wshobson_commands", ensure_repo=False)

        assert not result.success
        assert "Could not create directory" in result.error
        assert str(directories.tools_dir) in result.error


class TestRemover:
    def _install_all(self, installer, directories, registry):
        seed_all(directories, registry)
        installer.install_all()

    def test_remove_component(self, installer, remover, directories, registry):
        self._install_all(installer, directories, registry)

        results = remover.remove_components(["dlabs"])

        assert results["dlabs"].success
        assert results["dlabs"].removal.removed_count == 5
        assert remover.verify_removal("dlabs")
        assert not remover.verify_removal("awesome")

    def test_nothing_installed(self, remover, ui):
        results = remover.remove_components(["awesome"])
        assert results["awesome"].success
        assert results["awesome"].removal.removed_count == 0
        assert any("found to remove" in m for m in ui.messages("info"))

    def test_unknown_key_is_failed_result(self, remover):
        results = remover.remove_components(["bogus"])
        assert not results["bogus"].success
        assert results["bogus"].removal.error_count == 1

    def test_remove_all_cleans_up(self, installer, remover, directories, registry):
        self._install_all(installer, directories, registry)

        results = remover.remove_all()

        assert set(results) == set(registry.keys())
        assert remover.installed() == []
        assert not directories.commands_dir.exists()
        assert directories.agents_dir.is_dir()
        assert list(directories.agents_dir.iterdir()) == []

    def test_sources_survive_removal(self, installer, remover, directories, registry):
        self._install_all(installer, directories, registry)
        remover.remove_all()
        assert (directories.source_dir / "dallasLabs" / "debugger.md").exists()

    def test_broken_links_swept(self, installer, remover, directories, registry):
        self._install_all(installer, directories, registry)
        (directories.source_dir / "wshobson-agents" / "backend-architect.md").unlink()

        remover.remove_components(["dlabs"])

        assert not os.path.lexists(directories.agents_dir / "wshobson-backend-architect.md")
        assert (directories.agents_dir / "wshobson-security-auditor.md").is_symlink()

    def test_installed(self, installer, remover, directories, registry):
        seed_collection(directories, registry, "dlabs", DLABS_FILES)
        installer.install_component("dlabs")
        assert remover.installed() == ["dlabs"]
