# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
VerbGuard package entrypoint.

VerbGuard probes a single URL with a fixed set of HTTP methods (verb tampering
checks) and reports the status code and body size per method, or a classified
transport error. Probes run concurrently under a bounded permit pool; settings
are carried in an immutable dataclass rather than module globals.
"""

from .config import ProbeSettings, load_probe_settings
from .errors import ErrorCategory, FailureKind, category_reason, classify_exception
from .http import ProbeExecutor, create_default_http_client, execute_probe, is_valid_target_url
from .log import setup_logging
from .models import DEFAULT_METHODS, ProbeFailure, ProbeOutcome, ProbeRequest, ProbeSuccess
from .runtime import VerbGuard
from .scan import Dispatcher, PermitPool, dispatch
from .version import __version__

__all__ = [
    "DEFAULT_METHODS",
    "Dispatcher",
    "ErrorCategory",
    "FailureKind",
    "PermitPool",
    "ProbeExecutor",
    "ProbeFailure",
    "ProbeOutcome",
    "ProbeRequest",
    "ProbeSettings",
    "ProbeSuccess",
    "VerbGuard",
    "category_reason",
    "classify_exception",
    "create_default_http_client",
    "dispatch",
    "execute_probe",
    "is_valid_target_url",
    "load_probe_settings",
    "setup_logging",
    "__version__",
]
