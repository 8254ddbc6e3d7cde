"""
Tests for the xcodebuild CI runner. No tool is ever executed; runners are fakes.
"""

from __future__ import annotations

from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from reactive_lookup.ci.xcodebuild_runner import (
    EXIT_TOOL_NOT_FOUND,
    CIConfig,
    CIStep,
    build_steps,
    check_toolchain,
    main,
    run_steps,
)

CONFIG = CIConfig(
    toolchain="/Applications/Xcode_11.app",
    scheme="SwiftUI-Notes",
    configuration="Debug",
    sdk="iphonesimulator13.0",
    destination="platform=iOS Simulator,OS=13.0,name=iPhone 8",
)


class FakeRunner:
    def __init__(self, codes: dict[str, int] | None = None, missing: set[str] | None = None) -> None:
        self.codes = codes or {}
        self.missing = missing or set()
        self.commands: list[list[str]] = []

    def __call__(self, command: list[str], check: bool = False) -> SimpleNamespace:
        self.commands.append(command)
        if command[0] in self.missing:
            raise FileNotFoundError(command[0])
        return SimpleNamespace(returncode=self.codes.get(" ".join(command), 0))


def test_build_steps_order() -> None:
    steps = build_steps(CONFIG)
    commands = [s.command for s in steps]
    assert commands[0] == ["ls", "-al", "/Applications"]
    assert commands[1] == ["sudo", "xcode-select", "-s", "/Applications/Xcode_11.app"]
    assert commands[2:6] == [
        ["xcodebuild", "--help"],
        ["xcodebuild", "-showsdks"],
        ["xcodebuild", "-showBuildSettings"],
        ["xcodebuild", "-list"],
    ]
    assert commands[6] == ["xcodebuild", "-scheme", "SwiftUI-Notes", "-showdestinations"]
    assert commands[7] == [
        "xcodebuild",
        "-scheme", "SwiftUI-Notes",
        "-configuration", "Debug",
        "-sdk", "iphonesimulator13.0",
        "-destination", "platform=iOS Simulator,OS=13.0,name=iPhone 8",
        "test",
        "-showBuildTimingSummary",
    ]
    assert len(steps) == 8


def test_build_steps_without_sudo_or_diagnostics() -> None:
    config = replace(CONFIG, use_sudo=False)
    steps = build_steps(config, diagnostics=False)
    assert [s.command[0] for s in steps] == ["xcode-select", "xcodebuild"]
    assert steps[-1].command[-2:] == ["test", "-showBuildTimingSummary"]


def test_step_display_quotes_arguments() -> None:
    step = CIStep("dest", ["xcodebuild", "-destination", "name=iPhone 8"])
    assert step.display == "xcodebuild -destination 'name=iPhone 8'"


def test_run_steps_all_pass(capsys) -> None:
    runner = FakeRunner()
    steps = build_steps(CONFIG)
    assert run_steps(steps, runner=runner) == 0
    assert runner.commands == [s.command for s in steps]
    out = capsys.readouterr().out
    assert "[1/8]" in out
    assert "[8/8]" in out


def test_run_steps_stops_at_first_failure_with_its_code() -> None:
    runner = FakeRunner(codes={"xcodebuild -showsdks": 65})
    assert run_steps(build_steps(CONFIG), runner=runner) == 65
    assert runner.commands[-1] == ["xcodebuild", "-showsdks"]
    assert len(runner.commands) == 4


def test_run_steps_missing_tool() -> None:
    runner = FakeRunner(missing={"sudo"})
    assert run_steps(build_steps(CONFIG), runner=runner) == EXIT_TOOL_NOT_FOUND
    assert len(runner.commands) == 2


def test_run_steps_dry_run_executes_nothing(capsys) -> None:
    runner = FakeRunner()
    assert run_steps(build_steps(CONFIG), runner=runner, dry_run=True) == 0
    assert runner.commands == []
    assert "-showBuildTimingSummary" in capsys.readouterr().out


def test_check_toolchain(tmp_path) -> None:
    ok, msg = check_toolchain(str(tmp_path / "Xcode_11.app"))
    assert ok is False
    assert msg.startswith("[X] Toolchain not found")

    with patch("reactive_lookup.ci.xcodebuild_runner.shutil.which", return_value=None):
        ok, msg = check_toolchain(str(tmp_path))
    assert ok is False
    assert "xcodebuild" in msg

    with patch("reactive_lookup.ci.xcodebuild_runner.shutil.which", return_value="/usr/bin/xcodebuild"):
        ok, msg = check_toolchain(str(tmp_path))
    assert ok is True
    assert msg.startswith("[OK]")


@pytest.fixture
def no_env(monkeypatch):
    with patch("reactive_lookup.utils.config.load_config"):
        for key in ("XCODE_TOOLCHAIN", "XCODE_SCHEME", "XCODE_CONFIGURATION", "XCODE_SDK", "XCODE_DESTINATION"):
            monkeypatch.delenv(key, raising=False)
        yield


def test_main_dry_run_with_overrides(no_env, capsys) -> None:
    code = main(["--dry-run", "--no-sudo", "--skip-diagnostics", "--scheme", "Notes", "--sdk", "iphonesimulator14.0"])
    assert code == 0
    out = capsys.readouterr().out
    assert "[1/2]" in out
    assert "sudo" not in out
    assert "-scheme Notes" in out
    assert "-sdk iphonesimulator14.0" in out
    assert "/Applications/Xcode_11.app" in out


def test_main_check_reports_missing_toolchain(no_env, tmp_path, capsys) -> None:
    code = main(["--check", "--toolchain", str(tmp_path / "missing.app")])
    assert code == 1
    assert "[X]" in capsys.readouterr().out
