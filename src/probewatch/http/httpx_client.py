# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed ProbeExecutor implementation."""

from __future__ import annotations

import logging

import httpx

from ..config import HttpSettings, load_http_settings
from ..probe.spec import ProbeSpec
from ..utils.context import get_assertion_context
from .client import ProbeExecutor
from .headers import has_header
from .models import Executed, ExecutionFailed, HttpResponse, ProbeOutcome, StreamBody

logger = logging.getLogger(__name__)


class HttpxExecutor(ProbeExecutor):
    """Synchronous httpx executor; responses come back with an unread streaming body."""

    def __init__(self, settings: HttpSettings | None = None, client: httpx.Client | None = None):
        self.settings = settings or load_http_settings()
        self._client = client or self._build_client(self.settings.verify_ssl)
        self._alt_clients: dict[bool, httpx.Client] = {}

    def _build_client(self, verify: bool) -> httpx.Client:
        return httpx.Client(
            follow_redirects=self.settings.allow_redirects,
            timeout=self.settings.timeout,
            verify=verify,
        )

    def _client_for(self, spec: ProbeSpec) -> httpx.Client:
        if spec.verify_ssl is None or spec.verify_ssl == self.settings.verify_ssl:
            return self._client
        client = self._alt_clients.get(spec.verify_ssl)
        if client is None:
            client = self._build_client(spec.verify_ssl)
            self._alt_clients[spec.verify_ssl] = client
        return client

    def _timeout_for(self, spec: ProbeSpec) -> float:
        if spec.timeout is not None:
            return spec.timeout
        context_timeout = get_assertion_context().timeout
        return context_timeout if context_timeout is not None else self.settings.timeout

    def execute(self, spec: ProbeSpec) -> ProbeOutcome:
        headers = spec.request_headers()
        if not has_header(headers, "User-Agent"):
            headers.append(("User-Agent", self.settings.user_agent))
        follow_redirects = spec.follow_redirects if spec.follow_redirects is not None else self.settings.allow_redirects

        client = self._client_for(spec)
        try:
            request = client.build_request(
                spec.method,
                spec.url,
                headers=headers,
                content=spec.body,
                timeout=self._timeout_for(spec),
            )
            resp = client.send(request, stream=True, follow_redirects=follow_redirects)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Probe %s failed to execute: %s", spec.describe(), exc)
            return ExecutionFailed.from_exception(exc)

        return Executed(
            HttpResponse(
                status_code=resp.status_code,
                headers=resp.headers,
                body=StreamBody(resp.iter_bytes(), on_close=resp.close),
                url=str(resp.url),
                encoding=resp.charset_encoding,
                meta={"http_version": resp.http_version},
            )
        )

    def close(self) -> None:
        self._client.close()
        for client in self._alt_clients.values():
            client.close()
        self._alt_clients.clear()
