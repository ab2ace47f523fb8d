from dishka import Provider as DishkaProvider

from projdup.util.di.scope import Scope


class Provider(DishkaProvider):
    """Base for all projdup providers. Defaults to the UOW scope."""

    scope = Scope.UOW
