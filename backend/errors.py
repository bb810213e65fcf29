"""
Error types for the voice controller.

Every failure here is non-fatal to a session:
- RemoteResolutionError is recovered by the local knowledge base.
- CapabilityUnavailableError degrades the UI to an "unsupported" state.
"""

from __future__ import annotations

import asyncio

import openai


class RemoteErrorCategory:
    """Stable categories for remote reasoning failures."""

    NETWORK = "remote.network"
    TIMEOUT = "remote.timeout"
    STATUS = "remote.status"
    UNCONFIGURED = "remote.unconfigured"
    EMPTY_REPLY = "remote.empty_reply"
    UNKNOWN = "remote.unknown"


class RemoteResolutionError(Exception):
    """The remote reasoning service did not produce a usable reply."""

    def __init__(self, category: str, detail: str = "") -> None:
        super().__init__(f"{category}: {detail}" if detail else category)
        self.category = category
        self.detail = detail


class CapabilityUnavailableError(Exception):
    """The platform lacks speech capture or speech playback."""

    def __init__(self, capability: str, reason: str = "unsupported") -> None:
        super().__init__(f"{capability} unavailable: {reason}")
        self.capability = capability
        self.reason = reason


def classify_remote_error(error: BaseException) -> RemoteResolutionError:
    """
    Map a provider exception onto a RemoteResolutionError.

    Order matters: APITimeoutError subclasses APIConnectionError.
    """
    if isinstance(error, RemoteResolutionError):
        return error

    if isinstance(error, (asyncio.TimeoutError, openai.APITimeoutError)):
        return RemoteResolutionError(RemoteErrorCategory.TIMEOUT, str(error))

    if isinstance(error, openai.APIConnectionError):
        return RemoteResolutionError(RemoteErrorCategory.NETWORK, str(error))

    if isinstance(error, openai.APIStatusError):
        return RemoteResolutionError(
            RemoteErrorCategory.STATUS,
            f"HTTP {error.status_code}",
        )

    return RemoteResolutionError(
        RemoteErrorCategory.UNKNOWN,
        f"{type(error).__name__}: {error}",
    )
