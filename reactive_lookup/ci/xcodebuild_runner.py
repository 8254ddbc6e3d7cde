"""
CI driver for the Xcode sample project.

Selects a toolchain, prints the build environment (SDKs, build settings,
schemes, destinations) and runs the test action against a simulated device.
The exit code is whatever the failing tool returned, or 0 when every step
passed; no codes of its own are invented except 127 for a missing executable.

Usage:
    python -m reactive_lookup.ci.xcodebuild_runner --dry-run
    reactive-lookup-ci --skip-diagnostics --sdk iphonesimulator13.0
"""

from __future__ import annotations

import argparse
import shlex
import shutil
import subprocess
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Sequence

from reactive_lookup.utils.config import (
    log_level,
    xcode_configuration,
    xcode_destination,
    xcode_scheme,
    xcode_sdk,
    xcode_toolchain,
)
from reactive_lookup.utils.logger import get_logger, setup_logger

logger = get_logger()

EXIT_TOOL_NOT_FOUND = 127


@dataclass(frozen=True)
class CIConfig:
    toolchain: str
    scheme: str
    configuration: str
    sdk: str
    destination: str
    use_sudo: bool = True

    @classmethod
    def from_env(cls) -> "CIConfig":
        return cls(
            toolchain=xcode_toolchain(),
            scheme=xcode_scheme(),
            configuration=xcode_configuration(),
            sdk=xcode_sdk(),
            destination=xcode_destination(),
        )


@dataclass(frozen=True)
class CIStep:
    name: str
    command: list[str]

    @property
    def display(self) -> str:
        return shlex.join(self.command)


def build_steps(config: CIConfig, diagnostics: bool = True) -> list[CIStep]:
    """
    Steps in execution order. Without diagnostics only the toolchain
    selection and the test run remain.
    """
    select = ["xcode-select", "-s", config.toolchain]
    if config.use_sudo:
        select = ["sudo"] + select

    steps: list[CIStep] = []
    if diagnostics:
        steps.append(CIStep("Show what's in Applications", ["ls", "-al", "/Applications"]))
    steps.append(CIStep(f"Switch to {Path(config.toolchain).name}", select))
    if diagnostics:
        steps.extend([
            CIStep("xcodebuild --help", ["xcodebuild", "--help"]),
            CIStep("Show SDKs", ["xcodebuild", "-showsdks"]),
            CIStep("Show build settings", ["xcodebuild", "-showBuildSettings"]),
            CIStep("List schemes and targets", ["xcodebuild", "-list"]),
            CIStep(
                "Show available destinations",
                ["xcodebuild", "-scheme", config.scheme, "-showdestinations"],
            ),
        ])
    steps.append(CIStep(
        f"Run the {config.scheme} test suite",
        [
            "xcodebuild",
            "-scheme", config.scheme,
            "-configuration", config.configuration,
            "-sdk", config.sdk,
            "-destination", config.destination,
            "test",
            "-showBuildTimingSummary",
        ],
    ))
    return steps


def run_steps(
    steps: Sequence[CIStep],
    runner: Callable[..., Any] = subprocess.run,
    dry_run: bool = False,
) -> int:
    """Run steps in order, stopping at the first failure. Returns that step's exit code."""
    total = len(steps)
    for i, step in enumerate(steps, 1):
        print(f"[{i}/{total}] {step.name}\n  $ {step.display}", flush=True)
        if dry_run:
            continue
        try:
            result = runner(step.command, check=False)
        except FileNotFoundError as e:
            logger.error("Step '%s' could not start: %s", step.name, e)
            return EXIT_TOOL_NOT_FOUND
        code = getattr(result, "returncode", 1)
        if code != 0:
            logger.error("Step '%s' failed with exit code %s", step.name, code)
            return code
    return 0


def check_toolchain(path: str) -> tuple[bool, str]:
    """Preflight: the toolchain exists and xcodebuild is on PATH."""
    if not Path(path).exists():
        return False, f"[X] Toolchain not found: {path}"
    if shutil.which("xcodebuild") is None:
        return False, "[X] xcodebuild not found on PATH"
    return True, f"[OK] Toolchain available: {path}"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Build and test the Xcode sample project on a simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--toolchain", help="Xcode.app to select (default: XCODE_TOOLCHAIN)")
    parser.add_argument("--scheme", help="Scheme to test (default: XCODE_SCHEME)")
    parser.add_argument("--configuration", help="Build configuration (default: XCODE_CONFIGURATION)")
    parser.add_argument("--sdk", help="SDK, e.g. iphonesimulator13.0 (default: XCODE_SDK)")
    parser.add_argument("--destination", help="Destination descriptor (default: XCODE_DESTINATION)")
    parser.add_argument("--no-sudo", action="store_true", help="Run xcode-select without sudo")
    parser.add_argument("--skip-diagnostics", action="store_true", help="Only select the toolchain and test")
    parser.add_argument("--dry-run", action="store_true", help="Print the commands without running them")
    parser.add_argument("--check", action="store_true", help="Only verify the toolchain is usable")
    args = parser.parse_args(argv)

    setup_logger(level=log_level())

    config = CIConfig.from_env()
    overrides = {
        k: v
        for k, v in {
            "toolchain": args.toolchain,
            "scheme": args.scheme,
            "configuration": args.configuration,
            "sdk": args.sdk,
            "destination": args.destination,
        }.items()
        if v
    }
    config = replace(config, use_sudo=not args.no_sudo, **overrides)

    if args.check:
        ok, msg = check_toolchain(config.toolchain)
        print(msg)
        return 0 if ok else 1

    steps = build_steps(config, diagnostics=not args.skip_diagnostics)
    return run_steps(steps, dry_run=args.dry_run)


if __name__ == "__main__":
    sys.exit(main())
