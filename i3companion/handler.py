from typing import Optional, Set

import i3ipc

from i3companion import i3_proxy


class Handler:
    """Common interface of everything the listener dispatches events to.

    Handlers declare the event classes they need and consume events one at a
    time. A handler may query i3 through the proxy it's given, but it never
    runs the final command itself: it returns the command string and the
    listener sends it.
    """

    def subscriptions(self) -> Set[i3ipc.Event]:
        raise NotImplementedError

    def handle_event(self, event: i3ipc.events.IpcBaseEvent,
                     i3: i3_proxy.I3Proxy) -> Optional[str]:
        raise NotImplementedError
