import time
from typing import Annotated

from fastapi import Depends, Request

from swift.config import Settings
from swift.models.model_manager import ModelManager


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_model_manager(request: Request) -> ModelManager:
    return request.app.state.models


def get_request_id(request: Request) -> str:
    settings: Settings = request.app.state.settings
    return request.headers.get(settings.request_id_header) or str(int(time.time() * 1000))


SettingsDep = Annotated[Settings, Depends(get_settings)]
ModelsDep = Annotated[ModelManager, Depends(get_model_manager)]
RequestIdDep = Annotated[str, Depends(get_request_id)]
