"""Global logging and error handling utilities"""
import logging
import sys
import traceback

# Detect debug mode - True if running from source, False if packaged
DEBUG_MODE = not getattr(sys, 'frozen', False)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_logger = logging.getLogger('CanvasComposer')


def configure_logging(level=logging.WARNING):
    """Install the standard console handler (warnings and errors by default)"""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)  # Output to console
        ]
    )


def loggerRaise(e: Exception, user_message: str = None, title: str = "Error"):
    """Handle exceptions with extra logging in release mode

    Args:
        e: The exception to handle
        user_message: User-friendly message to log alongside the error (optional)
        title: Short title for the log record

    In DEBUG_MODE:
        - Just raises the exception (shows full traceback)

    In RELEASE_MODE:
        - Logs the user message and the full traceback
        - Then raises the exception
    """
    if DEBUG_MODE:
        # Dev mode: just raise to see full traceback
        raise e

    tb = traceback.format_exc()
    message = user_message if user_message else str(e)
    _logger.error(f"{title}: {message}\n{tb}")

    # Re-raise so the caller can handle it appropriately
    raise e
