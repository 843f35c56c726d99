import time
from typing import Callable, List, Optional, Set

import i3ipc

from i3companion import handler, i3_proxy, logger

logger = logger.logger

_RESTART_CHANGE = 'restart'


class ConnectionTimeoutError(Exception):
    pass


class Listener:
    """Pumps i3 events into the handlers, surviving i3 restarts.

    Events are read from a dedicated connection. Commands returned by the
    handlers, as well as the queries they make, go through a second
    connection so that replies are never interleaved with events.
    """

    # pylint: disable=too-many-arguments
    def __init__(self,
                 handlers: List[handler.Handler],
                 connection_timeout: float = 3.0,
                 reconnect_interval: float = 0.003,
                 dry_run: bool = False,
                 connection_factory: Callable[[], i3ipc.Connection] = (
                     i3ipc.Connection),
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.handlers = handlers
        self.connection_timeout = connection_timeout
        self.reconnect_interval = reconnect_interval
        self.dry_run = dry_run
        self.connection_factory = connection_factory
        self.clock = clock
        self.sleep = sleep
        self.i3: Optional[i3_proxy.I3Proxy] = None
        self._restarting = False

    def subscriptions(self) -> Set[i3ipc.Event]:
        # Shutdown events are always needed to tell restarts from exits.
        subscriptions = {i3ipc.Event.SHUTDOWN}
        for event_handler in self.handlers:
            subscriptions |= event_handler.subscriptions()
        return subscriptions

    def connect(self) -> i3ipc.Connection:
        deadline = self.clock() + self.connection_timeout
        while True:
            try:
                return self.connection_factory()
            # i3ipc raises a plain Exception when it can't find the socket
            # path, which happens while i3 is (re)starting.
            # pylint: disable-next=broad-except
            except Exception as e:
                last_error = e
            if self.clock() >= deadline:
                raise ConnectionTimeoutError(
                    f'Failed connecting to i3 within '
                    f'{self.connection_timeout}s: {last_error}') from last_error
            self.sleep(self.reconnect_interval)

    def run(self) -> None:
        subscriptions = self.subscriptions()
        logger.info('Subscribing to i3 events: %s',
                    sorted(e.value for e in subscriptions))
        first_connection = True
        while True:
            try:
                events_connection = self.connect()
                for event in subscriptions:
                    events_connection.on(event, self._on_event)
                self.i3 = i3_proxy.I3Proxy(self.connect(), self.dry_run)
            except ConnectionTimeoutError as e:
                if first_connection:
                    raise
                logger.warning('%s, retrying', e)
                continue
            first_connection = False
            self._restarting = False
            logger.info('Connected to i3, listening to events')
            events_connection.main()
            if not self._restarting:
                logger.info('i3 event stream ended, exiting')
                return
            logger.info('i3 is restarting, reconnecting')

    def _on_event(self, _: i3ipc.Connection,
                  event: i3ipc.events.IpcBaseEvent) -> None:
        if (isinstance(event, i3ipc.events.ShutdownEvent) and
                event.change == _RESTART_CHANGE):
            self._restarting = True
        for event_handler in self.handlers:
            command = event_handler.handle_event(event, self.i3)
            if command:
                self.i3.send_i3_command(command)
