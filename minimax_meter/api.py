"""Client for the MiniMax coding-plan quota endpoint."""

import logging
import time
from dataclasses import dataclass
from typing import Optional

import requests

USAGE_URL = "https://www.minimax.io/v1/api/openplatform/coding_plan/remains"

# (connect, read) seconds
REQUEST_TIMEOUT = (30, 60)
DEFAULT_RETRY_AFTER = 60


# ── Errors ────────────────────────────────────────────────────────────


class UsageAPIError(Exception):
    """Base class for every failure the usage client reports."""

    message = "Unexpected error."
    recovery_suggestion: Optional[str] = None

    def __str__(self):
        return self.message


class InvalidEndpoint(UsageAPIError):
    message = "Invalid URL configuration. Please restart the app."


class Unauthorized(UsageAPIError):
    message = "Invalid API key. Please check your credentials in Settings."
    recovery_suggestion = "Open Settings to update your API key"


class NetworkError(UsageAPIError):
    recovery_suggestion = "Check your internet connection and try again"

    def __init__(self, cause):
        super().__init__(cause)
        self.cause = cause
        self.message = f"Network error: {cause}. Please check your connection."


class DecodingError(UsageAPIError):
    def __init__(self, cause):
        super().__init__(cause)
        self.cause = cause
        self.message = f"Failed to process server response: {cause}"


class NoData(UsageAPIError):
    """The server answered 200 but reported no usable quota data."""

    def __init__(self, status_msg=None):
        super().__init__(status_msg)
        self.status_msg = status_msg
        self.message = "No data received from the server. Please try again."
        if status_msg:
            self.message = f"No data received from the server ({status_msg}). Please try again."


class ServerError(UsageAPIError):
    def __init__(self, status_code, detail=None):
        super().__init__(status_code, detail)
        self.status_code = status_code
        self.detail = detail
        self.message = f"Server error ({status_code}): {detail or 'Unknown error'}"


class RateLimited(UsageAPIError):
    """HTTP 429. Advisory: callers should wait ``retry_after`` seconds."""

    recovery_suggestion = "The app will automatically retry after the cooldown period"

    def __init__(self, retry_after=DEFAULT_RETRY_AFTER):
        super().__init__(retry_after)
        self.retry_after = retry_after
        self.message = f"Rate limited. Please wait {int(retry_after)} seconds before retrying."


# ── Data ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class UsageSnapshot:
    """Quota figures for the current interval, as reported by one response."""
    total_count: int = 0
    used_count: int = 0
    remaining_count: int = 0
    remaining_time_ms: int = 0
    start_time_ms: int = 0
    end_time_ms: int = 0
    model_name: Optional[str] = None

    @property
    def usage_percentage(self) -> float:
        if self.total_count <= 0:
            return 0.0
        return self.used_count / self.total_count

    @property
    def remaining_time_seconds(self) -> int:
        return self.remaining_time_ms // 1000


def mask_key(api_key):
    """Shorten an API key for log output."""
    if not api_key:
        return "no key"
    return f"{api_key[:4]}..."


def parse_usage(payload) -> UsageSnapshot:
    """Build a snapshot from a decoded ``coding_plan/remains`` body.

    Raises NoData when the server flags a failure or returns no models,
    and DecodingError when the body does not have the expected shape.
    """
    try:
        base_resp = payload.get("base_resp") or {}
        model_remains = payload.get("model_remains") or []
        status_code = base_resp.get("status_code")
    except AttributeError as e:
        raise DecodingError(e) from e

    if status_code != 0 or not model_remains:
        raise NoData(base_resp.get("status_msg"))

    try:
        first = model_remains[0]
        total = int(first["current_interval_total_count"])
        # Despite its name, current_interval_usage_count is the REMAINING count.
        remaining = int(first["current_interval_usage_count"])
        if total < 0 or remaining < 0 or remaining > total:
            raise ValueError(
                f"counts out of range: total={total} remaining={remaining}"
            )
        return UsageSnapshot(
            total_count=total,
            used_count=total - remaining,
            remaining_count=remaining,
            remaining_time_ms=int(first.get("remains_time") or 0),
            start_time_ms=int(first.get("start_time") or 0),
            end_time_ms=int(first.get("end_time") or 0),
            model_name=first.get("model_name"),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise DecodingError(e) from e


def _retry_after(resp):
    value = resp.headers.get("Retry-After")
    try:
        return float(value) if value is not None else DEFAULT_RETRY_AFTER
    except ValueError:
        return DEFAULT_RETRY_AFTER


class UsageAPIClient:
    """Performs one authenticated GET per call. Retrying is up to the caller."""

    def __init__(self, session=None, url=USAGE_URL, timeout=REQUEST_TIMEOUT):
        if not url or not url.startswith(("http://", "https://")):
            raise InvalidEndpoint()
        self.session = session or requests.Session()
        self.url = url
        self.timeout = timeout

    def fetch_usage(self, api_key) -> UsageSnapshot:
        if not api_key:
            raise Unauthorized()

        logging.info(f"API Request: {self.url} | Key: {mask_key(api_key)}")
        started = time.monotonic()
        try:
            resp = self.session.get(
                self.url,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logging.error(f"Usage request failed: {e}")
            raise NetworkError(e) from e

        duration_ms = int((time.monotonic() - started) * 1000)
        logging.info(f"API Response: status={resp.status_code} duration={duration_ms}ms")

        if resp.status_code == 401:
            raise Unauthorized()
        if resp.status_code == 429:
            raise RateLimited(_retry_after(resp))
        if resp.status_code != 200:
            logging.error(f"Usage API error: {resp.status_code} {resp.text[:200]}")
            raise ServerError(resp.status_code)

        try:
            payload = resp.json()
        except ValueError as e:
            logging.error(f"Usage response is not JSON: {e}")
            raise DecodingError(e) from e

        return parse_usage(payload)
