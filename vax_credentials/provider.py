"""Turns a service account into short-lived bearer tokens, refreshed on demand.

Usage:
    from vax_credentials import CredentialProvider
    provider = CredentialProvider.from_environment()
    headers = {"Authorization": provider.get_authorization_token()}
"""

import asyncio
import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, BinaryIO, Callable, Mapping

from vax_credentials.cache import TokenCache
from vax_credentials.config import DECORATE_MAX_WORKERS
from vax_credentials.errors import CredentialsError, ExchangeError, VAXError
from vax_credentials.jwt_signer import load_private_key, sign_assertion
from vax_credentials.models import ServiceAccountKey
from vax_credentials.sources import CredentialSource, bytes_source, environment_source, file_source
from vax_credentials.token_client import TokenExchanger

logger = logging.getLogger("vax_credentials.provider")


class CredentialProvider:
    """Produces a currently valid ``Authorization`` value for outbound calls.

    Tokens are refreshed lazily, when a caller asks for one and the cached
    token is missing, expired or invalidated. At most one refresh runs at a
    time; concurrent callers wait for it and share its result.
    """

    def __init__(
        self,
        key: ServiceAccountKey,
        exchanger: TokenExchanger | None = None,
        clock: Callable[[], float] = time.time,
        executor: Executor | None = None,
    ):
        self.key = key
        # Parse up front so a bad key fails construction, not the first call.
        self._private_key = load_private_key(key.private_key)
        self._owns_exchanger = exchanger is None
        self._exchanger = exchanger or TokenExchanger()
        self._clock = clock
        self._cache = TokenCache()
        self._state_lock = threading.Lock()
        self._inflight: Future | None = None
        self._owns_executor = executor is None
        self._executor = executor
        self._executor_lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_source(cls, source: CredentialSource, **kwargs: Any) -> "CredentialProvider":
        return cls(ServiceAccountKey.from_json(source()), **kwargs)

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None, **kwargs: Any) -> "CredentialProvider":
        """Load the file named by VENDASTA_APPLICATION_CREDENTIALS."""
        return cls.from_source(environment_source(environ), **kwargs)

    @classmethod
    def from_file(cls, path: str | Path, **kwargs: Any) -> "CredentialProvider":
        return cls.from_source(file_source(path), **kwargs)

    @classmethod
    def from_json(cls, data: bytes | str | BinaryIO, **kwargs: Any) -> "CredentialProvider":
        return cls.from_source(bytes_source(data), **kwargs)

    @classmethod
    def from_info(cls, info: Mapping[str, Any], **kwargs: Any) -> "CredentialProvider":
        return cls(ServiceAccountKey.from_info(info), **kwargs)

    def get_authorization_token(self) -> str:
        """Return ``"Bearer <token>"``, refreshing first if needed.

        Raises CredentialsError if no valid token can be obtained.
        """
        return f"Bearer {self._get_token()}"

    def auth_header(self) -> dict[str, str]:
        """``{"Authorization": "Bearer <token>"}``, for passing as request headers."""
        return {"Authorization": self.get_authorization_token()}

    async def aget_authorization_token(self) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.get_authorization_token)

    def decorate(
        self,
        on_success: Callable[[str], None],
        on_failure: Callable[[CredentialsError], None],
    ) -> Future:
        """Resolve a header value off the caller's thread.

        Exactly one of the callbacks is invoked, once. The returned future
        completes after the callback returns. Raises RuntimeError once the
        provider has been closed.
        """
        return self._get_executor().submit(self._apply, on_success, on_failure)

    def invalidate(self) -> None:
        """Drop the cached token, e.g. after the server rejected it with a 401."""
        self._cache.invalidate()
        logger.debug("Token for %s invalidated", self.key.subject_email)

    def close(self) -> None:
        with self._executor_lock:
            if self._closed:
                return
            self._closed = True
            if self._owns_executor and self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None
        if self._owns_exchanger:
            self._exchanger.close()

    def __enter__(self) -> "CredentialProvider":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _get_token(self) -> str:
        token = self._cache.get(self._clock())
        if token is not None:
            return token

        with self._state_lock:
            token = self._cache.get(self._clock())
            if token is not None:
                return token
            flight = self._inflight
            leader = flight is None
            if leader:
                flight = self._inflight = Future()

        if not leader:
            # Share the outcome of the refresh already underway.
            logger.debug("Waiting for in-flight refresh for %s", self.key.subject_email)
            try:
                return flight.result()
            except CredentialsError as e:
                raise CredentialsError(e.message) from e.__cause__

        try:
            token = self._refresh()
        except Exception as e:
            reason = e.message if isinstance(e, VAXError) else f"{type(e).__name__}: {e}"
            logger.warning("Could not refresh token for %s: %s", self.key.subject_email, reason)
            error = CredentialsError(f"could not refresh token: {reason}")
            error.__cause__ = e
            self._finish(flight, error=error)
            raise error from e
        except BaseException:
            self._finish(flight, error=CredentialsError("could not refresh token: refresh was interrupted"))
            raise
        self._finish(flight, token=token)
        return token

    def _finish(self, flight: Future, token: str | None = None, error: CredentialsError | None = None) -> None:
        # Callers arriving after this point start a new refresh.
        with self._state_lock:
            self._inflight = None
        if error is not None:
            flight.set_exception(error)
        else:
            flight.set_result(token)

    def _refresh(self) -> str:
        assertion = sign_assertion(self.key, self._clock(), self._private_key)
        token, expires_at = self._exchanger.exchange(str(self.key.token_endpoint), assertion)
        if expires_at <= self._clock():
            raise ExchangeError("issued token is already expired")

        self._cache.store(token, expires_at)
        logger.info("Refreshed token for %s, expires at %d", self.key.subject_email, expires_at)
        return token

    def _apply(self, on_success, on_failure) -> None:
        try:
            header = self.get_authorization_token()
        except CredentialsError as e:
            on_failure(e)
            return
        except Exception as e:
            error = CredentialsError(f"could not refresh token: {e}")
            error.__cause__ = e
            on_failure(error)
            return
        on_success(header)

    def _get_executor(self) -> Executor:
        with self._executor_lock:
            if self._closed:
                raise RuntimeError("Cannot decorate, as the credential provider has been closed.")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=DECORATE_MAX_WORKERS,
                    thread_name_prefix="vax-credentials",
                )
            return self._executor
