from urllib.parse import quote

from streamrelay.config import Settings

_WILDCARD_HOSTS = {"", "0.0.0.0", "::"}


def build_stream_url(target: str, base_url: str = "") -> str:
    """Return the relay URL a player should load for ``target``.

    Empty ``base_url`` means the relay shares the player's origin.
    """
    path = f"/stream?url={quote(target, safe='')}"
    if base_url:
        return base_url.rstrip("/") + path
    return path


def relay_base_url(settings: Settings) -> str:
    """Absolute base URL for reaching this relay.

    ``public_base_url`` wins; otherwise the bind address, with wildcard
    binds mapped to loopback.
    """
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/")
    host = "127.0.0.1" if settings.host in _WILDCARD_HOSTS else settings.host
    return f"http://{host}:{settings.port}"
