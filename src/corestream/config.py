"""Client configuration."""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

import httpx

from .errors import ConfigurationError

DEFAULT_BASE_URL = "https://api.core.stream"
DEFAULT_TIMEOUT = 30.0

ENV_API_TOKEN = "CORESTREAM_API_TOKEN"
ENV_BASE_URL = "CORESTREAM_BASE_URL"
ENV_TIMEOUT = "CORESTREAM_TIMEOUT"


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings for a :class:`~corestream.client.CoreStreamClient`.

    Validated once on construction and immutable afterwards, so one config
    can back any number of clients and concurrent calls.

    Attributes:
        token: API bearer token (required)
        base_url: Base URL of the API (default: https://api.core.stream)
        timeout: Default per-request deadline in seconds
        transport: Custom httpx transport, e.g. ``httpx.MockTransport`` in tests
        headers: Additional headers to include in all requests
    """

    token: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    transport: Optional[httpx.BaseTransport] = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.token, str) or not self.token:
            raise ConfigurationError("corestream: token is required")

        try:
            url = httpx.URL(self.base_url)
        except (httpx.InvalidURL, TypeError) as err:
            raise ConfigurationError(
                f"corestream: invalid base URL {self.base_url!r}"
            ) from err
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigurationError(f"corestream: invalid base URL {self.base_url!r}")

        if self.transport is not None and not isinstance(
            self.transport, httpx.BaseTransport
        ):
            raise ConfigurationError(
                "corestream: transport must be an httpx.BaseTransport"
            )

        if self.timeout is not None:
            if isinstance(self.timeout, bool) or not isinstance(
                self.timeout, (int, float)
            ):
                raise ConfigurationError(
                    f"corestream: timeout must be a number, got {self.timeout!r}"
                )
            if self.timeout <= 0:
                raise ConfigurationError("corestream: timeout must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """
        Build a config from ``CORESTREAM_*`` environment variables.

        ``CORESTREAM_API_TOKEN`` is required; ``CORESTREAM_BASE_URL`` and
        ``CORESTREAM_TIMEOUT`` are optional.
        """
        env = os.environ if environ is None else environ

        timeout = DEFAULT_TIMEOUT
        raw_timeout = env.get(ENV_TIMEOUT)
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as err:
                raise ConfigurationError(
                    f"corestream: {ENV_TIMEOUT} is not a number: {raw_timeout!r}"
                ) from err

        return cls(
            token=env.get(ENV_API_TOKEN, ""),
            base_url=env.get(ENV_BASE_URL) or DEFAULT_BASE_URL,
            timeout=timeout,
        )
