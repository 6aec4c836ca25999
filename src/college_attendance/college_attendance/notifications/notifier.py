from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, Sequence

import requests

from ..core.constants import DEFAULT_PUSH_TIMEOUT_SECONDS
from ..core.exceptions import DispatchFailure
from .model import MulticastResult

logger = logging.getLogger(__name__)


class PushNotifier(Protocol):
    """Delivers a push message to device tokens.

    `send` returns True on success and either returns False or raises DispatchFailure otherwise.
    """

    def send(self, target: str, title: str, body: str, data: Dict[str, str]) -> bool:
        raise NotImplementedError

    def send_many(self, targets: Sequence[str], title: str, body: str, data: Dict[str, str]) -> MulticastResult:
        raise NotImplementedError


class HttpPushNotifier(PushNotifier):
    """Posts messages to a push gateway over HTTP with a bearer key."""

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        *,
        timeout: float = DEFAULT_PUSH_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._url = url
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if api_key:
            self._session.headers.update({"Authorization": f"Bearer {api_key}"})

    def _post(self, payload: dict) -> requests.Response:
        try:
            response = self._session.post(self._url, json=payload, timeout=self._timeout)
        except requests.RequestException as e:
            raise DispatchFailure(f"Push gateway unreachable: {e}") from e
        if response.status_code >= 400:
            raise DispatchFailure(f"Push gateway returned {response.status_code}: {response.text[:200]}")
        return response

    def send(self, target: str, title: str, body: str, data: Dict[str, str]) -> bool:
        self._post({"to": target, "notification": {"title": title, "body": body}, "data": data})
        return True

    def send_many(self, targets: Sequence[str], title: str, body: str, data: Dict[str, str]) -> MulticastResult:
        if not targets:
            return MulticastResult()
        response = self._post(
            {"registration_ids": list(targets), "notification": {"title": title, "body": body}, "data": data}
        )
        try:
            results = response.json().get("results") or []
        except ValueError:
            results = []
        if len(results) != len(targets):
            # Gateway accepted the batch without per-token detail.
            return MulticastResult(tuple(True for _ in targets))
        return MulticastResult(tuple("error" not in (r or {}) for r in results))

    def close(self) -> None:
        self._session.close()


class LoggingPushNotifier(PushNotifier):
    """Development notifier: logs messages instead of delivering them."""

    def send(self, target: str, title: str, body: str, data: Dict[str, str]) -> bool:
        logger.info("push to %s…: %s | %s", target[:8], title, body)
        return True

    def send_many(self, targets: Sequence[str], title: str, body: str, data: Dict[str, str]) -> MulticastResult:
        logger.info("push to %d targets: %s | %s", len(targets), title, body)
        return MulticastResult(tuple(True for _ in targets))
