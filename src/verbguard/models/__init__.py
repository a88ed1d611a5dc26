# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for VerbGuard."""

from .probe import (
    DEFAULT_METHODS,
    ProbeFailure,
    ProbeOutcome,
    ProbeRequest,
    ProbeSuccess,
)

__all__ = [
    "DEFAULT_METHODS",
    "ProbeFailure",
    "ProbeOutcome",
    "ProbeRequest",
    "ProbeSuccess",
]
