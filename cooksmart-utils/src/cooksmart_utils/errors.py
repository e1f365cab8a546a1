"""Error types raised by the recipe discovery engine."""


class RecipeDiscoveryError(Exception):
    """Base class for all recipe discovery errors."""


class NetworkError(RecipeDiscoveryError):
    """An external recipe source or model could not be reached, or returned a non-2xx status."""

    def __init__(self, message: str, source: str = "unknown"):
        super().__init__(message)
        self.source = source


class ParseError(RecipeDiscoveryError):
    """Model output could not be turned into JSON by a repair tier."""


class ValidationError(RecipeDiscoveryError):
    """A payload from an external source is not usable as a recipe at all."""


class ConcurrencyError(RecipeDiscoveryError):
    """A generation or download was started while another one is still running."""


class NoIngredientsError(RecipeDiscoveryError):
    """A search was requested with an empty pantry."""
