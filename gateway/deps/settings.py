# gateway/deps/settings.py
from fastapi import Request

from gateway.core.config import Settings


def get_settings(request: Request) -> Settings:
    """Dependency returning the settings the application was built with."""
    return request.app.state.settings
