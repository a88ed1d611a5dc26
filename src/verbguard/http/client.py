# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx client factory for probe transports."""

from __future__ import annotations

import logging

import httpx

from ..config import ProbeSettings, load_probe_settings

logger = logging.getLogger(__name__)


def create_http_client(
    settings: ProbeSettings | None = None,
    *,
    proxy: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """
    Build the shared probe client.

    TLS verification is always off so misconfigured and self-signed targets can be
    probed. Redirects are not followed and proxy environment variables are ignored;
    only the explicit ``proxy`` is used. A proxy that cannot be used (bad URL, missing
    SOCKS extra) is dropped with a warning.
    """
    settings = settings or load_probe_settings()
    options = {
        "verify": False,
        "follow_redirects": False,
        "trust_env": False,
        "timeout": httpx.Timeout(settings.timeout),
    }
    if transport is not None:
        return httpx.Client(transport=transport, **options)
    if proxy:
        try:
            return httpx.Client(proxy=proxy, **options)
        except (ValueError, ImportError, httpx.InvalidURL) as exc:
            logger.warning("Ignoring invalid proxy %r: %s", proxy, exc)
    return httpx.Client(**options)


def create_default_http_client(settings: ProbeSettings | None = None) -> httpx.Client:
    """Factory for the default client, routed through ``settings.proxy`` when set."""
    settings = settings or load_probe_settings()
    return create_http_client(settings, proxy=settings.proxy)


__all__ = ["create_default_http_client", "create_http_client"]
