from fastapi import Request

from signage.services.clock import ClockService
from signage.services.realtime import NotificationBus


def get_bus(request: Request) -> NotificationBus:
    return request.app.state.bus


def get_clocks(request: Request) -> ClockService:
    return request.app.state.clocks
