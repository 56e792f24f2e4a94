"""Exceptions raised by stackswap."""


class HotswapError(Exception):
    """Base class for stackswap errors."""


class HotswapConfigurationError(HotswapError, ValueError):
    """Invalid operator-supplied hotswap configuration."""


class TemplateError(HotswapError, ValueError):
    """A template could not be read or has an unexpected shape."""
