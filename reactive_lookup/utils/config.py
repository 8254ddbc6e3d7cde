"""Load and validate environment variables. Uses python-dotenv.

This module is intentionally thin and side-effect free except for loading `.env`.
Callers should use the accessor functions below rather than reading `os.environ`
directly, to keep environment handling consistent.
"""

from pathlib import Path

from dotenv import load_dotenv
import math
import os


def _project_root() -> Path:
    """Resolve project root (the directory holding pyproject.toml)."""
    return Path(__file__).resolve().parent.parent.parent


def load_config() -> None:
    """
    Load .env from project root. Idempotent; safe to call multiple times.
    Uses override=True so .env values take precedence over existing env vars.
    """
    env_path = _project_root() / ".env"
    load_dotenv(env_path, override=True)


def get_optional(key: str, default: str = "") -> str:
    """Get optional env var; return default if missing or empty."""
    load_config()
    val = os.getenv(key, "").strip()
    return val if val else default


def get_optional_int(key: str, default: int) -> int:
    """Get optional env var as int; return default if missing or invalid."""
    load_config()
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_optional_float(key: str, default: float) -> float:
    """Get optional env var as a finite float; return default if missing, invalid, nan or inf."""
    load_config()
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if math.isfinite(val) else default


# --- Public config accessors ---

def github_api_url() -> str:
    """Optional: GitHub REST base URL. Default https://api.github.com."""
    return get_optional("GITHUB_API_URL", "https://api.github.com").rstrip("/")


def github_token() -> str | None:
    """Optional: GitHub token. Anonymous requests are rate limited to 60/hour."""
    val = get_optional("GITHUB_TOKEN", "")
    return val or None


def github_timeout() -> float:
    """Optional: per-request timeout in seconds. Default 10."""
    return get_optional_float("GITHUB_TIMEOUT", 10.0)


def retry_max() -> int:
    """Optional: retries after the first attempt. Default 3. Negative values fall back to 3."""
    val = get_optional_int("RETRY_MAX", 3)
    return val if val >= 0 else 3


def retry_jitter() -> tuple[float, float]:
    """
    Optional: (min, max) pre-attempt delay in seconds. Default (1.0, 5.0).
    A reversed pair is swapped rather than rejected.
    """
    lo = get_optional_float("RETRY_JITTER_MIN", 1.0)
    hi = get_optional_float("RETRY_JITTER_MAX", 5.0)
    lo, hi = max(lo, 0.0), max(hi, 0.0)
    return (lo, hi) if lo <= hi else (hi, lo)


def username_settle_seconds() -> float:
    """Optional: quiet period before a typed username triggers a lookup. Default 0.5."""
    return max(get_optional_float("USERNAME_SETTLE_SECONDS", 0.5), 0.0)


def log_level() -> str:
    """Optional: logging level name. Default INFO."""
    return get_optional("LOG_LEVEL", "INFO").upper()


def xcode_toolchain() -> str:
    """Optional: Xcode.app to select before building."""
    return get_optional("XCODE_TOOLCHAIN", "/Applications/Xcode_11.app")


def xcode_scheme() -> str:
    return get_optional("XCODE_SCHEME", "SwiftUI-Notes")


def xcode_configuration() -> str:
    return get_optional("XCODE_CONFIGURATION", "Debug")


def xcode_sdk() -> str:
    return get_optional("XCODE_SDK", "iphonesimulator13.0")


def xcode_destination() -> str:
    """Optional: xcodebuild -destination descriptor for the simulated device."""
    return get_optional("XCODE_DESTINATION", "platform=iOS Simulator,OS=13.0,name=iPhone 8")


def project_root() -> Path:
    """Project root directory."""
    return _project_root()
