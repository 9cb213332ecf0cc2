import threading


class TokenCache:
    """Single-slot holder for the current bearer token and its expiry.

    Reads and writes are atomic; deciding when to refresh is left to the
    owner (see CredentialProvider).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._token: str | None = None
        self._expires_at: float | None = None

    def get(self, now: float) -> str | None:
        """Return the cached token if it is still valid at ``now``."""
        with self._lock:
            if self._token is None or self._expires_at is None:
                return None
            if self._expires_at <= now:
                return None
            return self._token

    def store(self, token: str, expires_at: float) -> None:
        with self._lock:
            self._token = token
            self._expires_at = expires_at

    def invalidate(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = None

    def snapshot(self) -> tuple[str | None, float | None]:
        with self._lock:
            return self._token, self._expires_at
