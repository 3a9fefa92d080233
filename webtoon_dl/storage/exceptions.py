from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable


@dataclass
class StreamWriteError(Exception):
    """Exception raised when an output file can not be built or written."""

    message: str


def stream_error_handler(func: Callable) -> Callable:
    """
    A decorator to wrap Exception over a StreamWriteError.

    Args:
        func: The asynchronous function to be decorated.

    Returns:
        The wrapped function.
    """

    @wraps(func)
    async def wrapper(*args: tuple, **kwargs: dict) -> Any:
        try:
            return await func(*args, **kwargs)
        except StreamWriteError:
            raise
        except Exception as exc:
            raise StreamWriteError(str(exc) or exc.__class__.__name__) from exc

    return wrapper
