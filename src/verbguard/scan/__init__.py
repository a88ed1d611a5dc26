# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe dispatch and concurrency control."""

from .dispatcher import Dispatcher, dispatch
from .permits import PermitPool

__all__ = ["Dispatcher", "PermitPool", "dispatch"]
