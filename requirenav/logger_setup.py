import logging
from pygls.lsp.server import LanguageServer
from lsprotocol.types import LogMessageParams, MessageType


class LspLogHandler(logging.Handler):
    """Log handler forwarding server records to the client as window/logMessage."""

    def __init__(self, ls: LanguageServer):
        super().__init__()
        self.ls = ls

    @staticmethod
    def message_type(levelno: int) -> MessageType:
        """Map a logging level, including custom ones, to an LSP message type."""
        if levelno >= logging.ERROR:
            return MessageType.Error
        if levelno >= logging.WARNING:
            return MessageType.Warning
        if levelno >= logging.INFO:
            return MessageType.Info
        return MessageType.Log

    def emit(self, record):
        try:
            message = self.format(record)
            # No client to talk to until the server object is built
            if self.ls is None or not hasattr(self.ls, "window_log_message"):
                return
            self.ls.window_log_message(
                LogMessageParams(message=message, type=self.message_type(record.levelno))
            )
        except Exception:
            self.handleError(record)


def parse_level(name: str, default: int = logging.INFO) -> int:
    """Map a level name such as "debug" to its logging constant."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def set_level(level: int) -> None:
    """Change the level of the server logger and all of its handlers."""
    logger = logging.getLogger("requirenav")
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def setup_logging(ls: LanguageServer, level: int = logging.INFO) -> logging.Logger:
    """Configures logging for the LSP server."""
    logger = logging.getLogger("requirenav")
    logger.setLevel(level)

    # Prevent duplicate log handlers in case of reload
    if not logger.hasHandlers():
        # Console handler (stderr, stdout carries the LSP stream)
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        console_handler.setFormatter(console_formatter)

        # LSP log handler
        lsp_handler = LspLogHandler(ls)
        lsp_handler.setLevel(level)
        lsp_formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
        lsp_handler.setFormatter(lsp_formatter)

        logger.addHandler(console_handler)
        logger.addHandler(lsp_handler)

    return logger
