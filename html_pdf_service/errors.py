"""Exceptions raised by the conversion pipeline."""


class ConverterError(Exception):
    """Base class for converter failures."""


class BrowserNotAvailableError(ConverterError):
    """Playwright is not installed in this environment."""


class BrowserLaunchError(ConverterError):
    """Chromium could not be launched or failed its startup self-test."""
