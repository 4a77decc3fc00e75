from pathlib import Path
import logging
import sys
from typing import Iterable, Optional
from datetime import datetime

REDACTED = "***"


class RedactSecretsFilter(logging.Filter):
    """Replace credential values in log records with `***`.

    Applied on handlers so records from every library (httpx included) pass through it.
    """

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        # longest first so a secret containing another is replaced whole
        self.secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def redact(self, text: str) -> str:
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self.redact(record.exc_text)
        return True


def setup_logging(
    logs_dir: Optional[str | Path] = None,
    log_file_name: str = "server.log",
    level: str | int = logging.INFO,
    log_to_file: bool = True,
) -> logging.Logger:
    """Configure root logging to stderr and, optionally, a file under `logs_dir`.

    Idempotent: calling multiple times won't add duplicate handlers.
    stdout is never used because it carries the MCP stdio protocol.
    Returns a module-level logger for callers to use.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # formatter used by both handlers
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    if log_to_file:
        if logs_dir is None:
            logs_dir = Path(__file__).resolve().parent.parent / "logs"
        else:
            logs_dir = Path(logs_dir)

        # Add timestamp to the logfile name so each run writes to a timestamped file
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        base = Path(log_file_name).stem
        ext = Path(log_file_name).suffix or ".log"
        log_file = logs_dir / f"{base}_{timestamp}{ext}"

        file_handler_exists = any(
            isinstance(h, logging.FileHandler) and Path(h.baseFilename).resolve() == log_file.resolve()
            for h in root_logger.handlers
        )
        if not file_handler_exists:
            try:
                logs_dir.mkdir(parents=True, exist_ok=True)
                fh = logging.FileHandler(log_file, encoding="utf-8")
                fh.setFormatter(formatter)
                fh.setLevel(level)
                root_logger.addHandler(fh)
            except OSError:
                # read-only install location: stderr only
                pass

    # Ensure a StreamHandler to stderr exists (don't duplicate)
    stream_stderr_exists = any(
        type(h) is logging.StreamHandler and getattr(h, "stream", None) is sys.stderr for h in root_logger.handlers
    )
    if not stream_stderr_exists:
        sh = logging.StreamHandler(sys.stderr)
        sh.setFormatter(formatter)
        sh.setLevel(level)
        root_logger.addHandler(sh)

    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logging.getLogger(__name__)


def install_redaction(secrets: Iterable[str]) -> RedactSecretsFilter:
    """Attach one shared redaction filter to every root handler."""
    redactor = RedactSecretsFilter(secrets)
    for handler in logging.getLogger().handlers:
        for existing in [f for f in handler.filters if isinstance(f, RedactSecretsFilter)]:
            handler.removeFilter(existing)
        handler.addFilter(redactor)
    return redactor
