"""
FastAPI dependency injection.

Dependencies provide configuration and the storage provider to route
handlers. The provider is created once by the application lifespan and
kept on app.state; routes borrow it through get_app_storage_provider and
never construct clients themselves.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from ..config.settings import Settings, get_settings
from ..infrastructure.storage.client import StorageProvider
from ..infrastructure.storage.errors import StorageNotInitializedError

logger = logging.getLogger(__name__)


def get_app_storage_provider(request: Request) -> StorageProvider:
    """
    Provide the application's storage provider.

    Raises StorageNotInitializedError if the lifespan has not run, which
    means the app was served without its startup hook.
    """
    provider = getattr(request.app.state, "storage_provider", None)
    if provider is None:
        logger.error("Storage provider requested before application startup")
        raise StorageNotInitializedError("Storage provider not initialized; application lifespan has not run")
    return provider


# These type aliases make route signatures cleaner
StorageProviderDep = Annotated[StorageProvider, Depends(get_app_storage_provider)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
