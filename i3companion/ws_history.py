"""Back and forth navigation through recently visited workspaces.

Every workspace change is recorded in a history (see `history.History`).
Bound keys then move a cursor through that history and focus the workspace
under it. The workspace changes caused by our own commands are not recorded,
so the history stays put while browsing. Browsing ends with the next
workspace change made by other means, or after `idle_timeout` without
navigation, at which point the visited workspaces move to the front.
"""
import enum
import time
from typing import Callable, Collection, Dict, Optional, Set

import i3ipc

from i3companion import handler, history, i3_proxy, keybinding, logger

logger = logger.logger

SWITCH_COMMAND = 'workspace number {0}'
MOVE_COMMAND = 'move container to workspace number {0}; workspace number {0}'
SHOW_STACK_TITLE = 'Workspace history'

_INIT_CHANGE = 'init'


class Action(enum.Enum):
    PREV = 'prev'
    NEXT = 'next'
    MOVE_PREV = 'move_prev'
    MOVE_NEXT = 'move_next'
    SWAP_PREV = 'swap_prev'
    SWAP_NEXT = 'swap_next'
    RESET = 'reset'
    TO_HEAD = 'to_head'
    MOVE_TO_HEAD = 'move_to_head'
    REMOVE_PREV = 'remove_prev'
    REMOVE_NEXT = 'remove_next'
    SHOW_STACK = 'show_stack'


def _workspace_number(con: Optional[i3ipc.Con]) -> Optional[int]:
    if con is None or con.num is None or con.num < 0:
        return None
    return con.num


def _workspace_output(con: Optional[i3ipc.Con]) -> Optional[str]:
    if con is None:
        return None
    return (con.ipc_data or {}).get('output')


class WorkspaceHistory(handler.Handler):

    def __init__(self,
                 config,
                 notifier=None,
                 clock: Callable[[], float] = time.monotonic,
                 dry_run: bool = False):
        self.histories = history.HistoryManager(config.size, config.mode)
        # Commands are only logged in dry-run mode, so they cause no events.
        self.dry_run = dry_run
        self.skip_visible = config.skip_visible
        self.idle_timeout: Optional[float] = config.idle_timeout
        self.bindings: Dict[Action, keybinding.KeyBinding] = dict(
            config.bindings)
        self.notifier = notifier
        self.clock = clock
        # Number of upcoming workspace events caused by our own commands.
        self.ignore_counter = 0
        self.current_output: Optional[str] = None
        self.activity_deadline = self.clock() + (self.idle_timeout or 0)

    def subscriptions(self) -> Set[i3ipc.Event]:
        return {i3ipc.Event.WORKSPACE, i3ipc.Event.BINDING}

    def handle_event(self, event: i3ipc.events.IpcBaseEvent,
                     i3: i3_proxy.I3Proxy) -> Optional[str]:
        if isinstance(event, i3ipc.events.WorkspaceEvent):
            self.on_workspace_change(event)
            return None
        if isinstance(event, i3ipc.events.BindingEvent):
            return self.on_binding(event.binding, i3)
        return None

    def on_workspace_change(self, event: i3ipc.events.WorkspaceEvent) -> None:
        if event.change == _INIT_CHANGE:
            return
        current_output = _workspace_output(event.current)
        if current_output is not None:
            self.current_output = current_output
        self._extend_deadline()
        if self.ignore_counter > 0:
            self.ignore_counter -= 1
            logger.debug('Ignoring workspace event caused by us, %d left',
                         self.ignore_counter)
            return
        old_num = _workspace_number(event.old)
        current_num = _workspace_number(event.current)
        if old_num == current_num:
            return
        # Named workspaces are not recorded, but the numbered side of the
        # transition still is.
        if old_num is not None:
            self.histories.get_or_create(_workspace_output(event.old)).push(
                old_num)
        if current_num is not None:
            self.histories.get_or_create(current_output).push(current_num)
        logger.debug('Workspace history for output %s: %s',
                     self.current_output,
                     self.histories.get(self.current_output))

    def on_binding(self, binding: i3ipc.events.BindingInfo,
                   i3: i3_proxy.I3Proxy) -> Optional[str]:
        timed_out = self.check_timeout()
        ws_history = self.histories.get(self.current_output)
        if not ws_history:
            return None
        action = self._find_action(binding)
        if action is None:
            return None
        logger.debug('Running %s on %s', action.value, ws_history)
        return self._run_action(action, ws_history, i3, timed_out)

    # pylint: disable=too-many-return-statements
    def _run_action(self, action: Action, ws_history: history.History,
                    i3: i3_proxy.I3Proxy, timed_out: bool) -> Optional[str]:
        prev, next_ = history.Direction.PREV, history.Direction.NEXT
        if action == Action.PREV:
            return self._switch(ws_history, i3, prev)
        if action == Action.NEXT:
            return self._switch(ws_history, i3, next_)
        if action == Action.MOVE_PREV:
            return self._switch(ws_history, i3, prev, move=True)
        if action == Action.MOVE_NEXT:
            return self._switch(ws_history, i3, next_, move=True)
        if action == Action.SWAP_PREV:
            self._swap(ws_history, i3, prev)
        elif action == Action.SWAP_NEXT:
            self._swap(ws_history, i3, next_)
        elif action == Action.RESET:
            # The timeout check already reset the cursors for this event.
            if not timed_out:
                self.reset_cursors()
        elif action == Action.TO_HEAD:
            return self._to_head(ws_history, i3)
        elif action == Action.MOVE_TO_HEAD:
            return self._to_head(ws_history, i3, move=True)
        elif action == Action.REMOVE_PREV:
            return self._remove(ws_history, i3, prev)
        elif action == Action.REMOVE_NEXT:
            return self._remove(ws_history, i3, next_)
        elif action == Action.SHOW_STACK:
            self._show_stack()
        return None

    def check_timeout(self) -> bool:
        if self.idle_timeout is None:
            return False
        now = self.clock()
        if now <= self.activity_deadline:
            return False
        logger.debug('Navigation idle for more than %ss, resetting cursors',
                     self.idle_timeout)
        self.reset_cursors()
        self.activity_deadline = now + self.idle_timeout
        return True

    def reset_cursors(self) -> None:
        for ws_history in self.histories.histories():
            ws_history.reset_cursor()
        self._extend_deadline()

    def _extend_deadline(self) -> None:
        if self.idle_timeout is not None:
            self.activity_deadline = self.clock() + self.idle_timeout

    def _find_action(self,
                     binding: i3ipc.events.BindingInfo) -> Optional[Action]:
        for action in Action:
            configured = self.bindings.get(action)
            if configured is not None and configured.matches(binding):
                return action
        return None

    def _skipped_workspaces(self, i3: i3_proxy.I3Proxy) -> Collection[int]:
        per_output = self.histories.mode == history.HistoryMode.PER_OUTPUT
        if not self.skip_visible and not per_output:
            return frozenset()
        try:
            workspaces = i3.get_workspaces()
        except (OSError, ValueError) as e:
            logger.warning(
                'Failed getting workspaces, not skipping visible ones: %s', e)
            return frozenset()
        skipped: Set[int] = set()
        for workspace in workspaces:
            if not workspace.visible:
                continue
            if self.skip_visible or workspace.output == self.current_output:
                skipped.add(workspace.num)
        return frozenset(skipped)

    def _command(self, workspace: int, move: bool) -> str:
        if move:
            command = MOVE_COMMAND.format(workspace)
            # Moving a container and following it triggers two events.
            caused_events = 2
        else:
            command = SWITCH_COMMAND.format(workspace)
            caused_events = 1
        if not self.dry_run:
            self.ignore_counter += caused_events
        return command

    def _switch(self,
                ws_history: history.History,
                i3: i3_proxy.I3Proxy,
                direction: history.Direction,
                move: bool = False) -> Optional[str]:
        if not ws_history.move_cursor(direction,
                                      self._skipped_workspaces(i3)):
            return None
        self._extend_deadline()
        return self._command(ws_history.current(), move)

    def _swap(self, ws_history: history.History, i3: i3_proxy.I3Proxy,
              direction: history.Direction) -> None:
        self._extend_deadline()
        skipped = self._skipped_workspaces(i3)
        first = ws_history.find(direction, skip=skipped)
        if first is None:
            return
        second = ws_history.find(direction, first, skipped)
        if second is None:
            return
        ws_history.swap(first, second)

    def _to_head(self,
                 ws_history: history.History,
                 i3: i3_proxy.I3Proxy,
                 move: bool = False) -> Optional[str]:
        target = ws_history.find_head(self._skipped_workspaces(i3))
        if target is None or target == ws_history.cursor:
            return None
        ws_history.set_cursor(target)
        self._extend_deadline()
        return self._command(ws_history.current(), move)

    def _remove(self, ws_history: history.History, i3: i3_proxy.I3Proxy,
                direction: history.Direction) -> Optional[str]:
        skipped = self._skipped_workspaces(i3)
        target = ws_history.find(direction, skip=skipped)
        if target is None:
            # Nothing left in that direction, the removed workspace still has
            # to be replaced by something.
            target = ws_history.find(history.Direction(-direction),
                                     skip=skipped)
        if target is None:
            return None
        workspace = ws_history[target]
        removed_index = ws_history.cursor
        # Removing shifts the cursor along with the entries after it.
        ws_history.set_cursor(target)
        ws_history.remove(removed_index)
        self._extend_deadline()
        return self._command(workspace, move=False)

    def _show_stack(self) -> None:
        body = self.histories.display(self.current_output)
        logger.info('%s:\n%s', SHOW_STACK_TITLE, body)
        if self.notifier is not None:
            self.notifier.notify(SHOW_STACK_TITLE, body)
