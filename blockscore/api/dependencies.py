"""FastAPI dependency injection: services and admin auth."""

from __future__ import annotations

from fastapi import Request

from blockscore.api.auth import API_KEY_HEADER, verify_admin_key
from blockscore.scoring.batch import BatchCoordinator
from blockscore.scoring.engine import ScoringEngine
from blockscore.services import Services
from blockscore.watchlist.store import Watchlist


def get_services(request: Request) -> Services:
    """Return the service graph owned by the application."""
    return request.app.state.services


def get_engine(request: Request) -> ScoringEngine:
    return get_services(request).engine


def get_batch(request: Request) -> BatchCoordinator:
    return get_services(request).batch


def get_watchlist(request: Request) -> Watchlist:
    return get_services(request).watchlist


def require_admin(request: Request) -> None:
    """Validate the X-API-Key header against the configured admin key."""
    verify_admin_key(request.headers.get(API_KEY_HEADER), get_services(request).admin_api_key)
