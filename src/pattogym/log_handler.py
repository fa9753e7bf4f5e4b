import logging

from .database import insert_log


class SQLiteHandler(logging.Handler):
    """
    Keeps WARNING-and-above records in the ``logs`` table so failed
    background saves and rejected sign-ins can be reviewed later. The
    traceback of a ``logger.exception`` call goes to its own column instead
    of being folded into the message.
    """

    def __init__(self, level=logging.WARNING):
        super().__init__(level)

    def emit(self, record):
        try:
            exception = None
            if record.exc_info:
                exception = self.formatException(record.exc_info)
            insert_log(record.levelname, record.name, record.getMessage(), exception)
        except Exception:
            self.handleError(record)
