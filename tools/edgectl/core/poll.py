"""Availability polling for freshly deployed URLs."""

from __future__ import annotations

import logging as std_logging
import socket
import webbrowser
from time import monotonic, sleep
from typing import Callable
from urllib.parse import urlsplit

import httpx

from tools.edgectl.core import logging
from tools.edgectl.core.context import DeployContext
from tools.edgectl.core.http_client import HttpClientFactory
from tools.edgectl.core.settings import EdgectlSettings

logger = std_logging.getLogger(__name__)


def poll_until_ready(
    url: str,
    settings: EdgectlSettings,
    *,
    client: httpx.Client | None = None,
) -> bool:
    """Wait until ``url`` resolves and answers 2xx.

    DNS propagation and the HTTP check share one deadline. Running out of
    time returns False; a deployment that is not live yet is not an error.
    """

    deadline = monotonic() + settings.poll_timeout_seconds
    interval = settings.poll_interval_seconds
    host = urlsplit(url).hostname or ""

    logging.step("Waiting for DNS to propagate")
    if settings.poll_initial_delay_seconds > 0:
        sleep(min(settings.poll_initial_delay_seconds, settings.poll_timeout_seconds))
    if not _wait_for_dns(host, deadline=deadline, interval=interval):
        logging.warning(f"Timed out while waiting for {host} to resolve")
        return False

    logging.step("Waiting for deployment to become available")
    owns_client = client is None
    if client is None:
        client = HttpClientFactory(settings).create_sync_client(follow_redirects=True)
    try:
        ready = _wait_for_http(client, url, deadline=deadline, interval=interval)
    finally:
        if owns_client:
            client.close()

    if ready:
        logging.success(f"{url} is live")
    else:
        logging.warning(f"Timed out while waiting for {url}")
    return ready


def _wait_for_dns(host: str, *, deadline: float, interval: float) -> bool:
    while True:
        try:
            socket.getaddrinfo(host, 443)
            return True
        except OSError as exc:
            logger.debug("DNS lookup for %s failed: %s", host, exc)
        if monotonic() >= deadline:
            return False
        sleep(interval)


def _wait_for_http(client: httpx.Client, url: str, *, deadline: float, interval: float) -> bool:
    last_err = None
    while True:
        try:
            response = client.get(url, headers={"Cache-Control": "no-cache"})
            if response.is_success:
                return True
            last_err = f"Status code {response.status_code}"
        except httpx.HTTPError as exc:
            last_err = str(exc)
        logger.debug("%s not ready: %s", url, last_err)
        if monotonic() >= deadline:
            return False
        sleep(interval)


def maybe_open_browser(
    ctx: DeployContext,
    settings: EdgectlSettings,
    *,
    opener: Callable[[str], object] = webbrowser.open,
    client: httpx.Client | None = None,
) -> bool:
    """Poll the deployed URL and open it when requested and reachable."""

    url = ctx.deployment.url
    if not url:
        return False
    ready = poll_until_ready(url, settings, client=client)
    if ready and ctx.open_browser:
        opener(url)
    return ready
