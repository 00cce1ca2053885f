"""
FastAPI dependencies shared by the route modules.
"""
from fastapi import Depends, Request

from gads_caller.config import Settings, get_settings
from gads_caller.services.call_scheduler import CallScheduler
from gads_caller.services.elevenlabs import ElevenLabsClient


def get_call_scheduler(request: Request) -> CallScheduler:
    """The application-wide scheduler created in create_app()."""
    return request.app.state.call_scheduler


def get_elevenlabs_client(settings: Settings = Depends(get_settings)) -> ElevenLabsClient:
    return ElevenLabsClient(settings.xi_api_key)
