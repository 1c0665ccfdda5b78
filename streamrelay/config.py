"""Configuration via Pydantic Settings, loaded from .env file."""

import logging
import os
from functools import cached_property
from pathlib import Path
from pydantic_settings import BaseSettings

_cfg_logger = logging.getLogger("config")

# Default trusted media hosts.
_DEFAULT_ALLOWED_HOSTS = ",".join([
    "pixeldrain.dev",
    "io-filedownloader.vercel.app",
    "files002.tusdrive.com",
    "files010.tusdrive.com",
    "files013.tusdrive.top",
    "gofile.io",
    "bzwok-9e28de65052d.herokuapp.com",
    "files002.tusdrive.top",
])

# Resolve .env path relative to the project root (parent of streamrelay/) so
# it works regardless of the working directory the process is launched from.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _resolve_env_file() -> Path:
    """Return an absolute path to the .env file.

    If ``STREAM_RELAY_ENV_FILE`` is set, use it (resolved relative to the
    project root when not absolute).  Otherwise default to
    ``<project_root>/.env``.
    """
    raw = os.environ.get("STREAM_RELAY_ENV_FILE", "")
    if raw:
        p = Path(raw)
        return p if p.is_absolute() else _PROJECT_ROOT / p
    return _PROJECT_ROOT / ".env"


def _read_hosts_file(path: str) -> list[str]:
    """One hostname per line; blank lines and ``#`` comments are skipped."""
    p = Path(path)
    if not p.is_absolute():
        p = _PROJECT_ROOT / p
    hosts = []
    for line in p.read_text(encoding="utf-8").splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            hosts.append(line)
    return hosts


class Settings(BaseSettings):
    # Server
    host: str = "0.0.0.0"
    port: int = 8787
    log_level: str = "INFO"

    # Allowlist: comma-separated hostnames, optionally extended from a file.
    # Matching is exact, so subdomains must be listed individually.
    allowed_hosts: str = _DEFAULT_ALLOWED_HOSTS
    allowed_hosts_file: str = ""

    # Sent upstream when the caller did not provide a User-Agent.
    fallback_user_agent: str = "StreamRelay/1.0"

    # -- Upstream client ------------------------------------------------------

    # Read timeout bounds response-header receipt and every body read.
    upstream_connect_timeout_s: float = 10.0
    upstream_read_timeout_s: float = 20.0
    upstream_write_timeout_s: float = 10.0
    upstream_pool_timeout_s: float = 10.0
    upstream_follow_redirects: bool = True
    upstream_max_connections: int = 100

    # -- Relay buffering ------------------------------------------------------

    relay_chunk_size: int = 65536
    relay_buffer_chunks: int = 16

    # Used by clients building relayed URLs; empty = same origin.
    public_base_url: str = ""

    model_config = {
        "env_file": str(_resolve_env_file()),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @cached_property
    def allowlist(self) -> frozenset[str]:
        hosts = self.allowed_hosts.split(",")
        if self.allowed_hosts_file:
            hosts.extend(_read_hosts_file(self.allowed_hosts_file))
        return frozenset(h.strip().lower() for h in hosts if h.strip())

    def warn_insecure_defaults(self):
        """Log allowlist state. Called once at startup."""
        if not self.allowlist:
            _cfg_logger.warning(
                "Allowlist is empty - every /stream request will be rejected "
                "with 403. Set ALLOWED_HOSTS or ALLOWED_HOSTS_FILE."
            )
        else:
            _cfg_logger.info(
                "Relaying to %d allowlisted hosts: %s",
                len(self.allowlist), ", ".join(sorted(self.allowlist)),
            )


settings = Settings()
