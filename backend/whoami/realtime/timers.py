from __future__ import annotations

from typing import Callable

from flask_socketio import SocketIO

from ..game.turns import TimerFactory


class BackgroundTimer:
    """One-shot timer on a Socket.IO background task (green thread under eventlet)."""

    def __init__(self, socketio: SocketIO, delay_sec: float, callback: Callable[[], None]) -> None:
        self._cancelled = False
        self._socketio = socketio
        socketio.start_background_task(self._run, delay_sec, callback)

    def _run(self, delay_sec: float, callback: Callable[[], None]) -> None:
        self._socketio.sleep(delay_sec)
        if not self._cancelled:
            callback()

    def cancel(self) -> None:
        self._cancelled = True


def socketio_timer_factory(socketio: SocketIO) -> TimerFactory:
    def _factory(delay_sec: float, callback: Callable[[], None]) -> BackgroundTimer:
        return BackgroundTimer(socketio, delay_sec, callback)

    return _factory
