from typing import Optional, Set, Tuple

import i3ipc

from i3companion import handler, i3_proxy, logger

logger = logger.logger

# Indices sent to the bar, 0 is used for layouts we don't know about.
LAYOUTS = ['splith', 'splitv', 'stacked', 'tabbed', 'dockarea', 'output']


def layout_index(layout: Optional[str]) -> int:
    try:
        return LAYOUTS.index(layout) + 1
    except ValueError:
        return 0


def find_focused(tree: i3ipc.Con) -> Tuple[Optional[i3ipc.Con],
                                           Optional[i3ipc.Con]]:
    """Returns the focused container and its parent.

    Follows the focus stack of each container down from the root.
    """
    parent = None
    node = tree
    while not node.focused:
        if not node.focus:
            # A leaf that isn't focused, i3 gave us an inconsistent tree.
            return None, None
        children = {c.id: c for c in node.nodes + node.floating_nodes}
        focused_child = children.get(node.focus[0])
        if focused_child is None:
            return None, None
        parent, node = node, focused_child
    return node, parent


class LayoutTracker(handler.Handler):
    """Sends the layout of the focused container to a bar."""

    def __init__(self, sender, pipe_echo_fmt: str):
        self.sender = sender
        self.pipe_echo_fmt = pipe_echo_fmt

    def subscriptions(self) -> Set[i3ipc.Event]:
        return {i3ipc.Event.TICK, i3ipc.Event.WORKSPACE, i3ipc.Event.WINDOW}

    def handle_event(self, event: i3ipc.events.IpcBaseEvent,
                     i3: i3_proxy.I3Proxy) -> Optional[str]:
        if not isinstance(event,
                          (i3ipc.events.WindowEvent,
                           i3ipc.events.WorkspaceEvent,
                           i3ipc.events.TickEvent)):
            return None
        try:
            tree = i3.get_tree()
        except (OSError, ValueError) as e:
            logger.warning('Failed getting the i3 tree: %s', e)
            return None
        focused, parent = find_focused(tree)
        if focused is None:
            logger.debug('No focused container found')
            return None
        layout = parent.layout if parent is not None else focused.layout
        self.sender.send(
            self.pipe_echo_fmt.replace('{}', str(layout_index(layout))))
        return None


class OutputTracker(handler.Handler):
    """Notifies a bar whenever outputs change."""

    def __init__(self, sender, ipc_str: str):
        self.sender = sender
        self.ipc_str = ipc_str

    def subscriptions(self) -> Set[i3ipc.Event]:
        return {i3ipc.Event.OUTPUT}

    def handle_event(self, event: i3ipc.events.IpcBaseEvent,
                     i3: i3_proxy.I3Proxy) -> Optional[str]:
        if isinstance(event, i3ipc.events.OutputEvent):
            self.sender.send(self.ipc_str)
        return None
