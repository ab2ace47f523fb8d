from projdup.util.di.base import Provider
from projdup.util.di.scope import Scope

__all__ = ["Provider", "Scope"]
