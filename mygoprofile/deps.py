"""FastAPI dependencies reading the per-app resources set up by create_app."""

import httpx
from fastapi import Request

from mygoprofile.config import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client
