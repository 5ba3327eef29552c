"""
Application endpoints: capabilities, app-wide settings, demo data and the
local cache.
"""

import logging
from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel

from ..dependencies import AuthenticatedUser, TrainingApiDep

logger = logging.getLogger(__name__)

router = APIRouter()


class AppSettingRequest(BaseModel):
    value: Any


class AppSettingResponse(BaseModel):
    key: str
    value: Any = None


@router.get("/capabilities", summary="Storage mode and available features")
async def capabilities(training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.get_capabilities()


@router.get("/settings/{key}", response_model=AppSettingResponse, summary="Read an app setting")
async def get_app_setting(key: str, training_api: TrainingApiDep, api_key: AuthenticatedUser) -> AppSettingResponse:
    return AppSettingResponse(key=key, value=training_api.get_app_settings(key))


@router.put("/settings/{key}", response_model=AppSettingResponse, summary="Write an app setting")
async def update_app_setting(
    key: str,
    request: AppSettingRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> AppSettingResponse:
    training_api.update_app_settings(key, request.value)
    return AppSettingResponse(key=key, value=request.value)


@router.post("/demo-seed", summary="Fill the local mirror with demo data")
async def seed_demo_data(training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.seed_demo_data()


@router.post("/cache/reset", status_code=status.HTTP_204_NO_CONTENT, summary="Clear the local mirror")
async def reset_cache(training_api: TrainingApiDep, api_key: AuthenticatedUser) -> None:
    logger.warning("Local mirror reset requested")
    training_api.reset_cache()
