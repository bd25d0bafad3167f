from __future__ import annotations

from typing import Optional


class ProviderError(Exception):
    """Any failure talking to the upstream market-data API."""


class TransportError(ProviderError):
    """Network failure or timeout before a response arrived."""


class UpstreamStatusError(ProviderError):
    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"API returned status {status_code}: {body}")


class DecodeError(ProviderError):
    """Response body was not JSON, had an unexpected shape, or a bad number."""


class RetryExhaustedError(ProviderError):
    def __init__(self, attempts: int, last_error: Optional[ProviderError]) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed after {attempts} retries: {last_error}")
