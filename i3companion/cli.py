#!/usr/bin/env python3

from __future__ import annotations

import argparse
import os.path
import sys
from typing import List

from i3companion import config as i3_config
from i3companion import handler, listener, logger, senders, trackers
from i3companion import ws_history

init_logger = logger.init_logger
LOG_LEVELS = logger.LOG_LEVELS
logger = logger.logger


def _create_args_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Workspace history navigation and bar helpers for i3.')
    parser.add_argument(
        '-c',
        '--config',
        help='Path of the TOML config file. Defaults to '
        f'{i3_config.CONFIG_PATH}, or the built-in defaults if it does not '
        'exist.')
    parser.add_argument('--log-level',
                        choices=LOG_LEVELS,
                        default='warning',
                        help='Logging level for stderr and syslog.')
    parser.add_argument(
        '--dry-run',
        action='store_true',
        default=False,
        help='If true, will log the i3 commands instead of sending them.')
    return parser


def _create_sender(pipe_type: str, target: str,
                   send_queue: senders.SendQueue):
    if pipe_type == 'shell':
        return senders.ShellCaller(target, send_queue)
    return senders.PipeSender(target, send_queue)


def create_handlers(config: i3_config.Config,
                    send_queue: senders.SendQueue,
                    dry_run: bool = False) -> List[handler.Handler]:
    pipes = {
        name: _create_sender(pipe_type, target, send_queue)
        for name, (pipe_type, target) in config.pipes.items()
    }
    handlers: List[handler.Handler] = []
    if config.ws_history is not None:
        notifier = None
        if config.ws_history.notify_cmd:
            notifier = senders.Notifier(config.ws_history.notify_cmd,
                                        send_queue)
        handlers.append(
            ws_history.WorkspaceHistory(config.ws_history,
                                        notifier,
                                        dry_run=dry_run))
    if config.layout_tracker is not None:
        handlers.append(
            trackers.LayoutTracker(pipes[config.layout_tracker.pipe],
                                   config.layout_tracker.pipe_echo_fmt))
    if config.output_tracker is not None:
        handlers.append(
            trackers.OutputTracker(pipes[config.output_tracker.pipe],
                                   config.output_tracker.ipc_str))
    return handlers


def main():
    args = _create_args_parser().parse_args()
    init_logger(os.path.basename(sys.argv[0]), args.log_level)
    try:
        if args.config:
            config = i3_config.load_config(args.config, fail_if_missing=True)
        else:
            config = i3_config.load_config()
    except i3_config.ConfigError as e:
        sys.stderr.write(f'ERROR: {e}\n')
        sys.exit(e.status)
    logger.debug('Using config: %s', config)
    handlers = create_handlers(config, senders.SendQueue(), args.dry_run)
    if not handlers:
        logger.warning('No features enabled in the config, nothing to do')
        return
    event_listener = listener.Listener(handlers, config.connection_timeout,
                                       config.reconnect_interval, args.dry_run)
    try:
        event_listener.run()
    except listener.ConnectionTimeoutError as e:
        sys.exit(f'ERROR: {e}')


if __name__ == '__main__':
    main()
