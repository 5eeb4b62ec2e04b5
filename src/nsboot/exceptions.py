from __future__ import annotations


class NsbootError(Exception):
    """Base class for errors raised by nsboot."""


class ConfigError(NsbootError):
    """The boot configuration is missing a required section or is invalid."""


class ResourceFetchError(NsbootError):
    """A resource could not be fetched from its locator."""

    def __init__(self, locator: str, reason: str) -> None:
        super().__init__(f"{locator}: {reason}")
        self.locator = locator
        self.reason = reason
