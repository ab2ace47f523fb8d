"""Custom Dishka scopes for projdup."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """projdup dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Process lifetime (transfer store, host connection, event bus)
    - UOW: Unit of Work (one prepare command or one delivered event)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
