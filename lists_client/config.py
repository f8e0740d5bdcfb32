from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
import sys
from urllib.parse import urlparse


class ConfigurationError(ValueError):
    pass


@dataclass(frozen=True)
class AppSettings:
    supabase_url: str
    anon_key: str
    home_path: str
    login_path: str
    timeout_seconds: int
    retry_attempts: int
    session_cache_path: str
    log_level: str

    @property
    def auth_url(self) -> str:
        return f"{self.supabase_url}/auth/v1"

    @staticmethod
    def from_env() -> "AppSettings":
        _load_dotenv_if_present()

        supabase_url = os.getenv("LISTS_SUPABASE_URL", "").strip().rstrip("/")
        anon_key = os.getenv("LISTS_SUPABASE_ANON_KEY", "").strip()

        home_path = os.getenv("LISTS_HOME_PATH", "/").strip()
        login_path = os.getenv("LISTS_LOGIN_PATH", "/login").strip()

        timeout_seconds = _int_from_env("LISTS_TIMEOUT_SECONDS", "30")
        retry_attempts = _int_from_env("LISTS_RETRY_ATTEMPTS", "2")

        default_cache_path = os.path.join(
            os.getenv("LOCALAPPDATA", os.getcwd()),
            "ListsClient",
            "session.json",
        )
        session_cache_path = os.getenv("LISTS_SESSION_CACHE_PATH", default_cache_path)
        log_level = os.getenv("LISTS_LOG_LEVEL", "INFO").strip().upper()

        settings = AppSettings(
            supabase_url=supabase_url,
            anon_key=anon_key,
            home_path=home_path,
            login_path=login_path,
            timeout_seconds=timeout_seconds,
            retry_attempts=retry_attempts,
            session_cache_path=session_cache_path,
            log_level=log_level,
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        missing = []
        if not self.supabase_url:
            missing.append("LISTS_SUPABASE_URL")
        if not self.anon_key:
            missing.append("LISTS_SUPABASE_ANON_KEY")

        if missing:
            raise ConfigurationError(
                "Missing required settings: " + ", ".join(missing)
            )

        if urlparse(self.supabase_url).scheme not in ("http", "https"):
            raise ConfigurationError("LISTS_SUPABASE_URL must be an http(s) URL")

        path_fields = {
            "LISTS_HOME_PATH": self.home_path,
            "LISTS_LOGIN_PATH": self.login_path,
        }
        invalid_paths = [name for name, value in path_fields.items() if not value.startswith("/")]
        if invalid_paths:
            raise ConfigurationError(
                "Navigation paths must start with '/': " + ", ".join(invalid_paths)
            )

        if self.timeout_seconds <= 0:
            raise ConfigurationError("LISTS_TIMEOUT_SECONDS must be greater than 0")

        if self.retry_attempts < 0:
            raise ConfigurationError("LISTS_RETRY_ATTEMPTS must be 0 or greater")

        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigurationError(
                "LISTS_LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
            )


def _int_from_env(name: str, default: str) -> int:
    raw = os.getenv(name, default).strip()
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def _load_dotenv_if_present(file_name: str = ".env") -> None:
    for candidate in _candidate_env_files(file_name):
        _load_env_file(candidate)


def _candidate_env_files(file_name: str) -> list[Path]:
    candidates: list[Path] = []

    explicit = os.getenv("LISTS_ENV_FILE", "").strip()
    if explicit:
        candidates.append(Path(explicit).expanduser())

    candidates.append(Path.cwd() / file_name)

    if getattr(sys, "frozen", False):
        exe_dir = Path(sys.executable).resolve().parent
        candidates.append(exe_dir / file_name)
    else:
        project_root = Path(__file__).resolve().parent.parent
        candidates.append(project_root / file_name)

    unique_candidates: list[Path] = []
    seen: set[str] = set()
    for path in candidates:
        normalized = str(path.resolve()) if path.exists() else str(path)
        if normalized in seen:
            continue
        seen.add(normalized)
        unique_candidates.append(path)
    return unique_candidates


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return

    try:
        with path.open("r", encoding="utf-8") as env_file:
            for raw_line in env_file:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue

                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"').strip("'")

                if key and key not in os.environ:
                    os.environ[key] = value
    except OSError:
        return
