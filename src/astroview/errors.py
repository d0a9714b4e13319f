"""Error taxonomy shared by the computation core and the provider clients."""


class AstroViewError(Exception):
    """Base class for every error raised by astroview."""


class MalformedInputError(AstroViewError, ValueError):
    """Raw input could not be parsed, or a required field is missing."""


class ValidationError(AstroViewError, ValueError):
    """A numeric input is outside the domain the calculation supports."""


class ProviderError(AstroViewError, RuntimeError):
    """An external data provider failed (transport, HTTP status, payload)."""


class QuotaExceeded(ProviderError):
    """The provider reported a rate or usage limit."""
