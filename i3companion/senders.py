import glob
import os
import queue
import shlex
import subprocess
import threading
import time
from typing import Callable, List, Optional

from i3companion import logger

logger = logger.logger

# Gives slow consumers (e.g. a status bar reading its pipe) time to process a
# message before the next one is written.
SEND_DELAY_SECS = 0.002
MAX_PENDING_SENDS = 64


class SendQueue:
    """Runs sends on a worker thread without waiting for them.

    Sends run one at a time in submission order. When more than `max_pending`
    sends are waiting, new ones are dropped.
    """

    def __init__(self,
                 max_pending: int = MAX_PENDING_SENDS,
                 delay: float = SEND_DELAY_SECS):
        self.delay = delay
        self._queue: queue.Queue = queue.Queue(maxsize=max_pending)
        self._worker: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def submit(self, func: Callable[..., None], *args) -> bool:
        self._ensure_worker()
        try:
            self._queue.put_nowait((func, args))
        except queue.Full:
            logger.warning('Send queue full, dropping %s%s', func.__name__,
                           args)
            return False
        return True

    def join(self) -> None:
        """Blocks until every submitted send has run."""
        self._queue.join()

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is not None and self._worker.is_alive():
                return
            self._worker = threading.Thread(target=self._run,
                                            name='i3companion-sender',
                                            daemon=True)
            self._worker.start()

    def _run(self) -> None:
        while True:
            func, args = self._queue.get()
            try:
                func(*args)
            except (OSError, subprocess.SubprocessError) as e:
                logger.warning('Send failed: %s', e)
            finally:
                self._queue.task_done()
            if self.delay:
                time.sleep(self.delay)


def _run_command(argv: List[str]) -> None:
    result = subprocess.run(argv,
                            stdout=subprocess.DEVNULL,
                            stderr=subprocess.PIPE,
                            check=False)
    if result.returncode != 0:
        logger.warning('Command %s exited with %d: %s', argv, result.returncode,
                       result.stderr.decode('utf-8', 'replace').strip())


class PipeSender:
    """Writes messages to every named pipe matching a glob."""

    def __init__(self, pipe_glob: str, send_queue: SendQueue):
        self.pipe_glob = pipe_glob
        self.send_queue = send_queue

    def send(self, text: str) -> None:
        self.send_queue.submit(self._write, text)

    def _write(self, text: str) -> None:
        if not text.endswith('\n'):
            text += '\n'
        data = text.encode('utf-8')
        for path in sorted(glob.glob(self.pipe_glob)):
            # Non blocking so that a pipe without a reader fails (ENXIO)
            # instead of hanging the worker.
            try:
                fd = os.open(path, os.O_WRONLY | os.O_APPEND | os.O_NONBLOCK)
            except OSError as e:
                logger.debug('Failed opening pipe %s: %s', path, e)
                continue
            try:
                os.write(fd, data)
            except OSError as e:
                logger.warning('Failed writing to pipe %s: %s', path, e)
            finally:
                os.close(fd)

    def __repr__(self):
        return f'PipeSender({self.pipe_glob!r})'


class ShellCaller:
    """Runs a command with the message split into shell words as arguments."""

    def __init__(self, cmd: str, send_queue: SendQueue):
        self.cmd = cmd
        self.send_queue = send_queue

    def send(self, text: str) -> None:
        try:
            args = shlex.split(text)
        except ValueError as e:
            logger.warning('Failed splitting message "%s": %s', text, e)
            return
        self.send_queue.submit(_run_command, [self.cmd] + args)

    def __repr__(self):
        return f'ShellCaller({self.cmd!r})'


class Notifier:
    """Desktop notifications through a notify-send compatible command."""

    def __init__(self, cmd: str, send_queue: SendQueue):
        self.cmd = cmd
        self.send_queue = send_queue

    def notify(self, title: str, body: str) -> None:
        self.send_queue.submit(_run_command, [self.cmd, title, body])
