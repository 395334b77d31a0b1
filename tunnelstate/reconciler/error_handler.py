"""Error handling helpers for status reconciliation."""

import logging

logger = logging.getLogger("tunnelstate")

__all__ = ["ErrorHandler"]


class ErrorHandler:
    """
    Helper class for consistent error handling around collaborator callbacks.

    The reconciler only calls out to code it does not own (status sinks, command
    senders, timer cleanup). These helpers keep a failure in such code from
    leaking into the reconciler's own state.
    """

    @staticmethod
    def safe_execute(
        func,
        default_return=None,
        log_error: bool = True,
        error_msg: str = "Error in operation",
        reraise: bool = False,
    ):
        """
        Execute a zero-argument callable and return its result, falling back to a provided default on failure.

        Parameters:
            func (callable): A zero-argument callable to execute.
            default_return: Value to return if execution fails.
            log_error (bool): If True, log caught exceptions with their traceback.
            error_msg (str): Message prefix used when logging errors.
            reraise (bool): If True, re-raise any caught exception instead of returning default_return.

        Returns:
            The value returned by `func()` on success, or `default_return` if execution failed.
        """
        try:
            return func()
        except Exception:
            if log_error:
                logger.exception("%s", error_msg)
            if reraise:
                raise
            return default_return

    @staticmethod
    def safe_cleanup(func, cleanup_name: str = "cleanup operation"):
        """Execute a cleanup callable, logging and suppressing any exception it raises."""
        try:
            func()
        except Exception as e:  # noqa: BLE001 - cleanup paths must not raise
            logger.debug("Error during %s: %s", cleanup_name, e)
