"""Summary: Application configuration for InviteScout.

Importance: Centralizes environment, .env, and config defaults for consistent behavior.
Alternatives: Use a dedicated settings library like Pydantic Settings.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from invitescout.calendar_markup import UTC_MARKER_MODES
from invitescout.free_text import UNRESOLVED_TIME_MODES
from invitescout.providers import PROVIDER_ORDER

SEEN_STORE_MODES = ("memory", "sqlite")


@dataclass(frozen=True)
class AppConfig:
    """Summary: Holds configuration values for providers, parsers, and storage.

    Importance: Ensures all services derive settings from a single source of truth.
    Alternatives: Store settings in a shared config file and parse at startup.
    """

    gmail_api_base_url: str
    graph_api_base_url: str
    calendar_api_base_url: str
    calendar_id: str
    enabled_providers: list[str]
    max_results: int
    subject_keywords: list[str]
    markup_utc_marker: str
    free_text_unresolved: str
    seen_store: str
    db_path: str
    concurrent_scan: bool
    provider_timeout: float
    request_timeout: float
    api_host: str
    api_port: int
    api_key: str
    log_level: str

    @staticmethod
    def from_env() -> "AppConfig":
        """Summary: Build configuration from defaults, .env, and environment.

        Importance: Keeps all variables defined in config defaults while allowing overrides.
        Alternatives: Parse only environment variables without a defaults file.
        """

        defaults = load_defaults(Path("config") / "defaults.json")
        load_dotenv(Path(".env"))

        def setting(name: str) -> str:
            return os.getenv(f"INVITESCOUT_{name.upper()}", str(defaults[name]))

        config = AppConfig(
            gmail_api_base_url=setting("gmail_api_base_url"),
            graph_api_base_url=setting("graph_api_base_url"),
            calendar_api_base_url=setting("calendar_api_base_url"),
            calendar_id=setting("calendar_id"),
            enabled_providers=parse_list(setting("enabled_providers")),
            max_results=int(setting("max_results")),
            subject_keywords=parse_list(setting("subject_keywords")),
            markup_utc_marker=setting("markup_utc_marker"),
            free_text_unresolved=setting("free_text_unresolved"),
            seen_store=setting("seen_store"),
            db_path=setting("db_path"),
            concurrent_scan=parse_bool(setting("concurrent_scan")),
            provider_timeout=float(setting("provider_timeout")),
            request_timeout=float(setting("request_timeout")),
            api_host=setting("api_host"),
            api_port=int(setting("api_port")),
            api_key=setting("api_key"),
            log_level=setting("log_level").upper(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Summary: Reject unknown option values at load time.

        Importance: Fails fast instead of misbehaving during a scan.
        Alternatives: Validate lazily where each option is used.
        """

        _ensure_choice("markup_utc_marker", self.markup_utc_marker, UTC_MARKER_MODES)
        _ensure_choice("free_text_unresolved", self.free_text_unresolved, UNRESOLVED_TIME_MODES)
        _ensure_choice("seen_store", self.seen_store, SEEN_STORE_MODES)
        for provider in self.enabled_providers:
            _ensure_choice("enabled_providers", provider, PROVIDER_ORDER)
        if self.max_results < 1:
            raise ValueError("max_results must be at least 1")


def load_defaults(path: Path) -> dict[str, str]:
    """Summary: Load configuration defaults from JSON.

    Importance: Ensures all variables exist in a single config file.
    Alternatives: Inline defaults in the AppConfig initializer.
    """

    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def load_dotenv(path: Path) -> None:
    """Summary: Load key-value pairs from a .env file into the environment.

    Importance: Keeps secrets out of code while supporting local workflows.
    Alternatives: Use python-dotenv or OS-specific secret stores.
    """

    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


def parse_list(value: str) -> list[str]:
    """Summary: Parse comma-separated values into a list.

    Importance: Allows list settings to live in flat env variables.
    Alternatives: Store lists as JSON strings.
    """

    return [item.strip() for item in value.split(",") if item.strip()]


def parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _ensure_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
    if value not in choices:
        raise ValueError(f"Invalid {name}: {value!r} (expected one of {', '.join(choices)})")
