import logging
import logging.handlers

_STDERR_FORMAT = (
    '%(asctime)s %(levelname)s [%(filename)s:%(lineno)d] %(message)s')
_SYSLOG_FORMAT = '{ident}[%(process)d]: %(levelname)s %(message)s'
_SYSLOG_ADDRESS = '/dev/log'

LOG_LEVELS = ('debug', 'info', 'warning', 'error', 'critical')

logger = logging.getLogger()


def _add_handler(handler: logging.Handler, fmt: str) -> None:
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)


def init_logger(ident: str, level: str = 'warning') -> None:
    """Sends log records to stderr and to the syslog daemon.

    `ident` prefixes the syslog messages, so it's usually the executable name.
    """
    # Calling this again (e.g. from tests) must not duplicate the output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    _add_handler(logging.StreamHandler(), _STDERR_FORMAT)
    # A missing syslog socket is ignored by the handler, records are dropped.
    _add_handler(logging.handlers.SysLogHandler(address=_SYSLOG_ADDRESS),
                 _SYSLOG_FORMAT.format(ident=ident))
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
