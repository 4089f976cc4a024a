"""Request dependencies for the web app.

The application factory puts the service and config on ``app.state``;
routes receive them through ``Depends`` instead of reaching into state.
"""

from fastapi import Request

from config import Config
from golinks.service import GoLinksService


def get_service(request: Request) -> GoLinksService:
    return request.app.state.service


def get_config(request: Request) -> Config:
    return request.app.state.config
