from __future__ import annotations

from datetime import date, datetime
from typing import Callable

from fastapi import Request

from config import Settings
from services.dispatcher import ReminderDispatcher
from stores import Stores


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_stores(request: Request) -> Stores:
    return request.app.state.stores


def get_clock(request: Request) -> Callable[[], datetime]:
    return request.app.state.clock


def get_today(request: Request) -> date:
    return request.app.state.clock().date()


def get_dispatcher(request: Request) -> ReminderDispatcher:
    return request.app.state.dispatcher
