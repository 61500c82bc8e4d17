#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Error types for the inbox sorter.

Only ConfigurationError (startup) and FilesystemError (root or inbox
unreadable) ever escape a cycle. Everything else is converted into a
"file stays in inbox" outcome by the component that hit it.
"""


class SorterError(Exception):
    """Base class for inbox sorter errors"""


class ConfigurationError(SorterError):
    """Missing or invalid setting; the process must not start"""


class FilesystemError(SorterError):
    """Root or inbox directory is missing or unreadable; aborts one cycle"""


class OracleUnavailable(SorterError):
    """Classification call failed (network, HTTP status, auth, bad envelope)"""
