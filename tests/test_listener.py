import unittest.mock
from typing import List, Optional, Set

import i3ipc
import pytest

from i3companion import handler, listener
from tests import test_util


class FakeConnection:
    """Replays a fixed list of events to the registered callbacks."""

    def __init__(self, events=()):
        self.events = list(events)
        self.callbacks = {}
        self.commands = []

    def on(self, event, callback):
        self.callbacks.setdefault(event, []).append(callback)

    def main(self):
        for event_type, event in self.events:
            for callback in self.callbacks.get(event_type, []):
                callback(self, event)

    def command(self, payload):
        self.commands.append(payload)
        return [unittest.mock.Mock(success=True, error=None)]


class FakeClock:

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, secs):
        self.sleeps.append(secs)
        self.now += secs


class RecordingHandler(handler.Handler):

    def __init__(self, name, subscriptions, calls, command=None):
        self.name = name
        self._subscriptions = subscriptions
        self.calls = calls
        self.command = command
        self.proxies = []

    def subscriptions(self) -> Set[i3ipc.Event]:
        return self._subscriptions

    def handle_event(self, event, i3) -> Optional[str]:
        self.calls.append((self.name, event))
        self.proxies.append(i3)
        return self.command


def _create_factory(connections: List):
    remaining = list(connections)

    def factory():
        item = remaining.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    return factory


def _workspace_event():
    return (i3ipc.Event.WORKSPACE, test_util.create_workspace_event(1, 2))


def _restart_event():
    return (i3ipc.Event.SHUTDOWN, test_util.create_shutdown_event('restart'))


def test_subscriptions_include_shutdown():
    handlers = [
        RecordingHandler('a', {i3ipc.Event.WORKSPACE}, []),
        RecordingHandler('b', {i3ipc.Event.WORKSPACE, i3ipc.Event.OUTPUT}, []),
    ]
    assert listener.Listener(handlers).subscriptions() == {
        i3ipc.Event.WORKSPACE, i3ipc.Event.OUTPUT, i3ipc.Event.SHUTDOWN
    }


def test_events_dispatched_to_handlers_in_order():
    calls = []
    events_connection = FakeConnection([_workspace_event()])
    commands_connection = FakeConnection()
    handlers = [
        RecordingHandler('first', {i3ipc.Event.WORKSPACE}, calls),
        RecordingHandler('second', {i3ipc.Event.OUTPUT}, calls),
    ]
    listener.Listener(handlers,
                      connection_factory=_create_factory(
                          [events_connection, commands_connection])).run()
    # Every handler sees every subscribed event, even the ones it didn't ask
    # for, and filters them itself.
    assert [name for name, _ in calls] == ['first', 'second']
    assert handlers[0].proxies[0].i3_connection is commands_connection


def test_commands_sent_on_separate_connection():
    events_connection = FakeConnection([_workspace_event()])
    commands_connection = FakeConnection()
    handlers = [
        RecordingHandler('ws', {i3ipc.Event.WORKSPACE}, [],
                         'workspace number 2'),
        RecordingHandler('bar', {i3ipc.Event.WORKSPACE}, []),
    ]
    listener.Listener(handlers,
                      connection_factory=_create_factory(
                          [events_connection, commands_connection])).run()
    assert commands_connection.commands == ['workspace number 2']
    assert events_connection.commands == []


def test_dry_run_sends_nothing():
    commands_connection = FakeConnection()
    handlers = [
        RecordingHandler('ws', {i3ipc.Event.WORKSPACE}, [],
                         'workspace number 2')
    ]
    listener.Listener(handlers,
                      dry_run=True,
                      connection_factory=_create_factory(
                          [FakeConnection([_workspace_event()]),
                           commands_connection])).run()
    assert commands_connection.commands == []


def test_reconnects_after_restart():
    calls = []
    first_events = FakeConnection([_restart_event()])
    second_events = FakeConnection([_workspace_event()])
    second_commands = FakeConnection()
    handlers = [RecordingHandler('ws', {i3ipc.Event.WORKSPACE}, calls)]
    factory = _create_factory(
        [first_events, FakeConnection(), second_events, second_commands])
    listener.Listener(handlers, connection_factory=factory).run()
    assert len(calls) == 2
    assert isinstance(calls[0][1], i3ipc.events.ShutdownEvent)
    assert isinstance(calls[1][1], i3ipc.events.WorkspaceEvent)
    assert second_events.callbacks.keys() == {
        i3ipc.Event.WORKSPACE, i3ipc.Event.SHUTDOWN
    }
    assert handlers[0].proxies[1].i3_connection is second_commands


def test_exits_on_shutdown_without_restart():
    calls = []
    events_connection = FakeConnection([
        (i3ipc.Event.SHUTDOWN, test_util.create_shutdown_event('exit')),
        _workspace_event(),
    ])
    handlers = [RecordingHandler('ws', {i3ipc.Event.WORKSPACE}, calls)]
    # Only one pair of connections is available, reconnecting would fail.
    listener.Listener(handlers,
                      connection_factory=_create_factory(
                          [events_connection, FakeConnection()])).run()
    assert len(calls) == 2


def test_first_connection_timeout():
    clock = FakeClock()
    event_listener = listener.Listener(
        [RecordingHandler('ws', {i3ipc.Event.WORKSPACE}, [])],
        connection_timeout=3.0,
        reconnect_interval=1.0,
        connection_factory=_create_factory([Exception('no socket')] * 10),
        clock=clock,
        sleep=clock.sleep)
    with pytest.raises(listener.ConnectionTimeoutError):
        event_listener.run()
    assert clock.sleeps == [1.0, 1.0, 1.0]


def test_connect_retries_until_available():
    clock = FakeClock()
    connection = FakeConnection()
    event_listener = listener.Listener(
        [],
        reconnect_interval=0.5,
        connection_factory=_create_factory(
            [OSError('refused'), Exception('no socket'), connection]),
        clock=clock,
        sleep=clock.sleep)
    assert event_listener.connect() is connection
    assert clock.sleeps == [0.5, 0.5]


def test_timeout_after_restart_keeps_retrying():
    clock = FakeClock()
    calls = []
    second_events = FakeConnection([_workspace_event()])
    failure = Exception('no socket')
    factory = _create_factory([
        FakeConnection([_restart_event()]),
        FakeConnection(),
        failure,
        failure,
        failure,
        second_events,
        FakeConnection(),
    ])
    listener.Listener(
        [RecordingHandler('ws', {i3ipc.Event.WORKSPACE}, calls)],
        connection_timeout=2.0,
        reconnect_interval=1.0,
        connection_factory=factory,
        clock=clock,
        sleep=clock.sleep).run()
    assert len(calls) == 2
    assert isinstance(calls[1][1], i3ipc.events.WorkspaceEvent)
