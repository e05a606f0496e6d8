"""
Tests for alternate install locations (dev_janitor/shadow_paths.py).
"""

import os

from dev_janitor.shadow_paths import (
    SHADOW_LOCATIONS,
    expand_base,
    platform_key,
    shadow_directories,
)


def make_dirs(root, *relative):
    for rel in relative:
        (root / rel).mkdir(parents=True, exist_ok=True)


class TestExpandBase:
    """Tests for base template expansion."""

    def test_plain_path(self):
        assert expand_base("/usr/lib/jvm", {}) == "/usr/lib/jvm"

    def test_variable_is_substituted(self):
        assert expand_base("{LOCALAPPDATA}/nvm", {"LOCALAPPDATA": "C:/Users/me/AppData/Local"}) == (
            "C:/Users/me/AppData/Local/nvm"
        )

    def test_missing_variable(self):
        assert expand_base("{NVM_HOME}", {}) is None
        assert expand_base("{NVM_HOME}", {"NVM_HOME": ""}) is None

    def test_home_prefers_home_then_userprofile(self):
        assert expand_base("{HOME}/.pyenv", {"HOME": "/home/me", "USERPROFILE": "C:/Users/me"}) == "/home/me/.pyenv"
        assert expand_base("{HOME}/.pyenv", {"USERPROFILE": "C:/Users/me"}) == "C:/Users/me/.pyenv"


class TestPlatformKey:
    """Tests for platform normalization."""

    def test_keys(self):
        assert platform_key("win32") == "win32"
        assert platform_key("linux") == "posix"
        assert platform_key("darwin") == "posix"


class TestShadowDirectories:
    """Tests for shadow_directories()."""

    def test_table_covers_runtimes(self):
        assert {"python", "node", "java"} <= set(SHADOW_LOCATIONS)

    def test_unknown_tool_has_none(self, tmp_path):
        assert shadow_directories("git", environ={"HOME": str(tmp_path)}, platform="linux") == []

    def test_pyenv_versions_on_posix(self, tmp_path):
        make_dirs(tmp_path, ".pyenv/versions/3.12.1/bin", ".pyenv/versions/3.11.9/bin", "miniconda3/bin")

        dirs = shadow_directories("python", environ={"HOME": str(tmp_path)}, platform="linux")

        assert dirs == [
            str(tmp_path / ".pyenv/versions/3.11.9/bin"),
            str(tmp_path / ".pyenv/versions/3.12.1/bin"),
            str(tmp_path / "miniconda3/bin"),
        ]

    def test_pyenv_root_overrides_home(self, tmp_path):
        make_dirs(tmp_path, "custom-pyenv/versions/3.10.4/bin", ".pyenv/versions/3.9.0/bin")
        environ = {"HOME": str(tmp_path), "PYENV_ROOT": str(tmp_path / "custom-pyenv")}

        dirs = shadow_directories("python", environ=environ, platform="linux")

        assert dirs == [str(tmp_path / "custom-pyenv/versions/3.10.4/bin")]

    def test_localappdata_python_on_windows(self, tmp_path):
        local = tmp_path / "AppData" / "Local"
        make_dirs(local, "Programs/Python/Python312", "Programs/Python/Python311")
        environ = {"LOCALAPPDATA": str(local), "USERPROFILE": str(tmp_path)}

        dirs = shadow_directories("python", environ=environ, platform="win32")

        assert dirs == [
            os.path.normpath(str(local / "Programs/Python/Python311")),
            os.path.normpath(str(local / "Programs/Python/Python312")),
        ]

    def test_windows_locations_ignored_on_posix(self, tmp_path):
        local = tmp_path / "AppData" / "Local"
        make_dirs(local, "Programs/Python/Python312")

        dirs = shadow_directories("python", environ={"LOCALAPPDATA": str(local), "HOME": str(tmp_path)}, platform="linux")

        assert dirs == []

    def test_nvm_falls_back_to_localappdata(self, tmp_path):
        local = tmp_path / "Local"
        make_dirs(local, "nvm/v20.11.0", "nvm/v18.19.0")

        dirs = shadow_directories("node", environ={"LOCALAPPDATA": str(local)}, platform="win32")

        assert dirs == [str(local / "nvm/v18.19.0"), str(local / "nvm/v20.11.0")]

    def test_nvm_home_wins(self, tmp_path):
        make_dirs(tmp_path, "nvm-home/v21.0.0", "Local/nvm/v18.19.0")
        environ = {"NVM_HOME": str(tmp_path / "nvm-home"), "LOCALAPPDATA": str(tmp_path / "Local")}

        dirs = shadow_directories("node", environ=environ, platform="win32")

        assert dirs == [str(tmp_path / "nvm-home/v21.0.0")]

    def test_extra_patterns_are_added(self, tmp_path):
        make_dirs(tmp_path, "opt/node-20/bin", "opt/node-18/bin", "single")

        dirs = shadow_directories(
            "node",
            environ={"HOME": str(tmp_path)},
            platform="linux",
            extra=[str(tmp_path / "opt/*/bin"), str(tmp_path / "single"), str(tmp_path / "missing")],
        )

        assert dirs == [
            str(tmp_path / "opt/node-18/bin"),
            str(tmp_path / "opt/node-20/bin"),
            str(tmp_path / "single"),
        ]

    def test_duplicates_are_dropped(self, tmp_path):
        make_dirs(tmp_path, ".nvm/versions/node/v20.11.0/bin")
        extra = [str(tmp_path / ".nvm/versions/node/v20.11.0/bin")]

        dirs = shadow_directories("node", environ={"HOME": str(tmp_path)}, platform="linux", extra=extra)

        assert dirs == [str(tmp_path / ".nvm/versions/node/v20.11.0/bin")]
