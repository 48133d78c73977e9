from __future__ import annotations


class ConfigClientError(RuntimeError):
    """Base class for every failure raised while resolving or loading configuration."""


class ParseError(ConfigClientError):
    pass


class ConfigIOError(ConfigClientError):
    pass


class ConfigurationError(ConfigClientError):
    pass


class BindingNotFoundError(ConfigurationError):
    pass


class AuthError(ConfigClientError):
    pass


class FetchError(ConfigClientError):
    pass
