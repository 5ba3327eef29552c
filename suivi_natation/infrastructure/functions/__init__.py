from .client import FunctionsClient, require_functions

__all__ = ["FunctionsClient", "require_functions"]
