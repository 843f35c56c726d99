from typing import List

import i3ipc

from i3companion import logger

logger = logger.logger


class I3Proxy:
    """Outbound side of the i3 connection: commands and queries.

    The inbound event stream uses its own connection, see `listener`.
    """

    def __init__(self,
                 i3_connection: i3ipc.Connection,
                 dry_run: bool = False):
        self.i3_connection = i3_connection
        self.dry_run = dry_run

    def get_tree(self) -> i3ipc.Con:
        return self.i3_connection.get_tree()

    def get_workspaces(self) -> List[i3ipc.replies.WorkspaceReply]:
        return self.i3_connection.get_workspaces()

    def send_i3_command(self, command: str) -> None:
        if self.dry_run:
            log_prefix = '[dry-run] would send'
        else:
            log_prefix = 'Sending'
        logger.info("%s i3 command: '%s'", log_prefix, command)
        if not self.dry_run:
            for reply in self.i3_connection.command(command):
                if not reply.success:
                    logger.warning('i3 command error: %s', reply.error)
