from dishka import AsyncContainer, from_context, make_async_container

from projdup.config import Config
from projdup.domain.transfer.util.di import TransferProvider
from projdup.infrastructure.di import HostProvider
from projdup.util.di.base import Provider
from projdup.util.di.scope import Scope


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()  # type: ignore[call-arg]

    return make_async_container(
        ConfigProvider(),
        HostProvider(),
        TransferProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
