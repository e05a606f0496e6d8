"""
Tests for the parallel scan (dev_janitor/scanner.py).
"""

from __future__ import annotations

import sys
import time
from unittest.mock import patch

import pytest

from dev_janitor.config import Config, Preferences, ToolRuleConfig
from dev_janitor.errors import ToolNotFoundError
from dev_janitor.models import ToolInfo, ToolVersion
from dev_janitor.rules import ToolRule
from dev_janitor.scanner import _settings, get_tool_info, scan_all

skip_on_windows = pytest.mark.skipif(
    sys.platform == "win32",
    reason="Uses POSIX shell scripts as fake tools"
)


def make_rule(tool_id: str, *candidates: str, pattern: str | None = None) -> ToolRule:
    return ToolRule(
        id=tool_id,
        name=tool_id.title(),
        category="custom",
        candidates=candidates or (tool_id,),
        version_args=("--version",),
        version_pattern=pattern,
    )


def make_info(tool_id: str, *versions: str) -> ToolInfo:
    return ToolInfo(
        id=tool_id,
        name=tool_id.title(),
        category="custom",
        versions=tuple(
            ToolVersion(version=v, path=f"/usr/bin/{tool_id}{i}", is_active=(i == 0))
            for i, v in enumerate(versions)
        ),
    )


def write_tool(directory, name: str, body: str) -> None:
    exe = directory / name
    exe.write_text(f"#!/bin/sh\n{body}\n")
    exe.chmod(0o755)


class TestScanAllMocked:
    """Tests for scan_all() aggregation with a stubbed detector."""

    def test_missing_tools_are_omitted(self):
        rules = [make_rule("zeta"), make_rule("alpha"), make_rule("ghost")]
        found = {"zeta": make_info("zeta", "1.0.0"), "alpha": make_info("alpha", "2.0.0")}

        with patch("dev_janitor.scanner.detect_tool", side_effect=lambda rule, *a, **kw: found.get(rule.id)):
            tools = scan_all(rules, max_workers=4)

        assert [t.id for t in tools] == ["alpha", "zeta"]

    def test_failing_rule_does_not_fail_scan(self):
        """Test an unexpected error in one detector only drops that rule."""
        def detect(rule, *args, **kwargs):
            if rule.id == "broken":
                raise RuntimeError("boom")
            return make_info(rule.id, "1.0.0")

        with patch("dev_janitor.scanner.detect_tool", side_effect=detect):
            tools = scan_all([make_rule("broken"), make_rule("fine")])

        assert [t.id for t in tools] == ["fine"]

    def test_empty_rule_set(self):
        assert scan_all([]) == []

    def test_config_preferences_are_used(self):
        """Test timeout and shadow paths come from configuration."""
        config = Config(
            preferences=Preferences(timeout_seconds=7, max_workers=2),
            shadow_paths={"alpha": ("/opt/alpha/bin",)},
        )
        with patch("dev_janitor.scanner.detect_tool", return_value=None) as mock_detect:
            scan_all([make_rule("alpha")], config=config)

        args = mock_detect.call_args.args
        assert args[1] == 7
        assert args[3] == ("/opt/alpha/bin",)

    def test_explicit_timeout_wins_over_config(self):
        config = Config(preferences=Preferences(timeout_seconds=7))
        with patch("dev_janitor.scanner.detect_tool", return_value=None) as mock_detect:
            scan_all([make_rule("alpha")], timeout=2, config=config)

        assert mock_detect.call_args.args[1] == 2

    def test_disabled_rules_are_not_scanned(self):
        config = Config(disabled=("git",))
        with patch("dev_janitor.scanner.detect_tool", return_value=None) as mock_detect:
            scan_all(config=config)

        scanned = {call.args[0].id for call in mock_detect.call_args_list}
        assert "git" not in scanned
        assert "node" in scanned


class TestGetToolInfo:
    """Tests for single-tool lookup."""

    def test_unknown_tool_raises(self):
        with pytest.raises(ToolNotFoundError):
            get_tool_info("not-a-tool")

    def test_detects_only_requested_rule(self):
        with patch("dev_janitor.scanner.detect_tool", return_value=make_info("git", "2.43.0")) as mock_detect:
            info = get_tool_info("GIT")

        assert info.id == "git"
        mock_detect.assert_called_once()
        assert mock_detect.call_args.args[0].id == "git"

    def test_custom_rule_from_config(self):
        config = Config(tools={"mytool": ToolRuleConfig(name="My Tool", candidates=("mytool",))})
        with patch("dev_janitor.scanner.detect_tool", return_value=None) as mock_detect:
            assert get_tool_info("mytool", config=config) is None

        assert mock_detect.call_args.args[0].name == "My Tool"


@skip_on_windows
class TestScanAllEndToEnd:
    """Tests running fake tools from a temporary PATH."""

    def test_git_example(self, tmp_path):
        """Test the documented git example end to end."""
        write_tool(tmp_path, "git", 'echo "git version 2.43.0"')
        rule = make_rule("git", "git", pattern=r"git version (\d+\.\d+\.\d+)")

        with patch.dict("os.environ", {"PATH": str(tmp_path)}):
            tools = scan_all([rule], timeout=10)

        assert len(tools) == 1
        assert tools[0].to_dict() == {
            "id": "git",
            "name": "Git",
            "category": "custom",
            "versions": [{"version": "2.43.0", "path": str(tmp_path / "git"), "is_active": True}],
            "status": "installed",
        }

    def test_two_candidates_two_installs(self, tmp_path):
        write_tool(tmp_path, "pip", 'echo "pip 24.0 from /usr/lib/python3/dist-packages/pip (python 3.12)"')
        write_tool(tmp_path, "pip3", 'echo "pip 23.3.1 from /home/u/.local/lib/python3.11/site-packages/pip"')
        rule = make_rule("pip", "pip", "pip3", pattern=r"pip (\d+\.\d+\.?\d*)")

        with patch.dict("os.environ", {"PATH": str(tmp_path)}):
            tools = scan_all([rule], timeout=10)

        assert tools[0].status == "multiple_versions"
        assert [(v.version, v.is_active) for v in tools[0].versions] == [("24.0", True), ("23.3.1", False)]

    def test_hung_tool_is_bounded(self, tmp_path):
        """Test a probe that never returns does not stall the scan."""
        write_tool(tmp_path, "hang", "sleep 60")
        write_tool(tmp_path, "quick", 'echo "quick 1.0.0"')

        start = time.monotonic()
        with patch.dict("os.environ", {"PATH": f"{tmp_path}:/bin:/usr/bin"}):
            tools = scan_all([make_rule("hang"), make_rule("quick")], timeout=1)
        elapsed = time.monotonic() - start

        assert [t.id for t in tools] == ["quick"]
        assert elapsed < 15

    def test_failing_tool_is_not_installed(self, tmp_path):
        write_tool(tmp_path, "broken", 'echo "broken 1.0.0"; exit 2')

        with patch.dict("os.environ", {"PATH": str(tmp_path)}):
            assert scan_all([make_rule("broken")], timeout=10) == []

    def test_repeated_scans_are_equal(self, tmp_path):
        write_tool(tmp_path, "alpha", 'echo "alpha 1.2.3"')
        write_tool(tmp_path, "beta", 'echo "beta, no version"')
        rules = [make_rule("alpha"), make_rule("beta"), make_rule("gamma")]

        with patch.dict("os.environ", {"PATH": str(tmp_path)}):
            first = scan_all(rules, timeout=10)
            second = scan_all(rules, timeout=10)

        assert first == second
        assert {t.id for t in first} == {"alpha", "beta"}
        assert next(t for t in first if t.id == "beta").versions[0].version == "unknown"


class TestSettings:
    """Tests for resolving timeout and worker count."""

    def test_default_config_defers_to_environment(self):
        """Test untouched preferences leave room for DEV_JANITOR_* overrides."""
        with patch("dev_janitor.scanner.MAX_WORKERS", 2):
            assert _settings(Config(), None, None) == (None, 2)

    def test_changed_preferences_win_over_environment(self):
        config = Config(preferences=Preferences(timeout_seconds=10, max_workers=4))
        with patch("dev_janitor.scanner.MAX_WORKERS", 2):
            assert _settings(config, None, None) == (10, 4)

    def test_arguments_win_over_preferences(self):
        config = Config(preferences=Preferences(timeout_seconds=10, max_workers=4))
        assert _settings(config, 3, 8) == (3, 8)

    def test_environment_timeout_reaches_runner(self):
        """Test a scan with default config probes with the runner's own timeout."""
        with patch("dev_janitor.scanner.detect_tool", return_value=None) as mock_detect:
            scan_all([make_rule("alpha")], config=Config())

        assert mock_detect.call_args.args[1] is None
