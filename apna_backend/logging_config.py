"""Logging setup for the Apna Freelancer backend.

All loggers live under the ``apna`` namespace so a single handler
configured at startup covers the whole service.
"""

import logging
import sys

LOGGER_NAMESPACE = "apna"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the ``apna`` logger tree.

    Safe to call more than once; the handler is only added the first time.
    """
    root = logging.getLogger(LOGGER_NAMESPACE)
    root.setLevel(level.upper())
    if not any(getattr(h, "_apna_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._apna_handler = True
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger, placing it under the ``apna`` namespace."""
    if name != LOGGER_NAMESPACE and not name.startswith(f"{LOGGER_NAMESPACE}."):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)


_moderation_logger = get_logger("apna.moderation.events")
_auth_logger = get_logger("apna.auth.events")


def log_moderation_event(
    admin_id: str,
    action: str,
    target_type: str,
    target_id: str,
) -> None:
    """Log a completed moderation transition."""
    _moderation_logger.info(
        f"moderation action={action} target={target_type}:{target_id} admin={admin_id}"
    )


def log_auth_event(
    event: str,
    user_id: str | None = None,
    success: bool = True,
    reason: str | None = None,
) -> None:
    """Log an authentication event. Never pass token material here."""
    message = f"auth event={event} user={user_id or '-'} success={success}"
    if reason:
        message += f" reason={reason}"
    if success:
        _auth_logger.info(message)
    else:
        _auth_logger.warning(message)
