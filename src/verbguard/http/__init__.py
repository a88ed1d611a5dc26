# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP layer exports."""

from .client import create_default_http_client, create_http_client
from .executor import ProbeExecutor, build_probe_request, execute_probe
from .headers import build_probe_headers, parse_header_lines
from .url import is_valid_target_url
from .user_agents import USER_AGENTS, pick_user_agent, random_user_agent

__all__ = [
    "USER_AGENTS",
    "ProbeExecutor",
    "build_probe_headers",
    "build_probe_request",
    "create_default_http_client",
    "create_http_client",
    "execute_probe",
    "is_valid_target_url",
    "parse_header_lines",
    "pick_user_agent",
    "random_user_agent",
]
