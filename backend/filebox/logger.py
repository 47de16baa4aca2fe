import functools
import gzip
import inspect
import logging
import logging.handlers
import os
import shutil
import sys
from pathlib import Path
from typing import Callable, ParamSpec, TypeVar

from .config import settings

logger = logging.getLogger("filebox")
logger.setLevel(logging.DEBUG)
formatter = logging.Formatter(
    "%(asctime)s %(levelname)s [%(module)s:%(funcName)s:%(lineno)d] %(message)s"
)

logs_dir = Path(settings.logs_dir)
logs_dir.mkdir(parents=True, exist_ok=True)


def rotator(source: str, dest: str) -> None:
    with open(source, "rb") as f_in:
        with gzip.open(dest + ".gz", "wb") as f_out:
            shutil.copyfileobj(f_in, f_out)
    os.remove(source)


log_file_handler = logging.handlers.TimedRotatingFileHandler(
    logs_dir / "filebox.log", when="midnight"
)
log_file_handler.setFormatter(formatter)
log_file_handler.rotator = rotator
logger.addHandler(log_file_handler)

log_stream_handler = logging.StreamHandler(sys.stdout)
log_stream_handler.setFormatter(formatter)
logger.addHandler(log_stream_handler)


P = ParamSpec("P")
R = TypeVar("R")


def log_exception(
    prefix: str = "",
    default_return: R | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator that logs and swallows exceptions raised by the wrapped function.

    Works for sync and async functions. The prefix may reference the
    function's parameters with braces, e.g. ``"Loading files for {identity}"``.
    When the exception is swallowed, ``default_return`` is returned instead.

    Usage:
        @log_exception("Refreshing {user_id}")
        async def refresh(user_id: str):
            ...
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        sig = inspect.signature(func)
        func_name = func.__qualname__

        def describe_call(args: tuple, kwargs: dict) -> str:
            try:
                bound = sig.bind(*args, **kwargs)
                bound.apply_defaults()
            except TypeError as e:
                logger.warning(
                    f"Failed to bind arguments for function {func_name}: {e}",
                    stacklevel=3,
                )
                return f"{prefix}: " if prefix else ""

            if not prefix:
                return ""
            if "{" in prefix and "}" in prefix:
                try:
                    return f"{prefix.format_map(bound.arguments)}: "
                except (KeyError, ValueError, IndexError) as e:
                    logger.warning(
                        f"Failed to format prefix '{prefix}' with arguments: {e}",
                        stacklevel=3,
                    )
            return f"{prefix}: "

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    logger.error(
                        f"{describe_call(args, kwargs)}{type(e).__name__}: {e}",
                        exc_info=True,
                        stacklevel=2,
                    )
                    return default_return  # type: ignore[return-value]

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"{describe_call(args, kwargs)}{type(e).__name__}: {e}",
                    exc_info=True,
                    stacklevel=2,
                )
                return default_return  # type: ignore[return-value]

        return sync_wrapper

    return decorator
