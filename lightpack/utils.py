"""
Utility functions for the Lightpack library
"""
import asyncio
import sys
from typing import Any, Awaitable, Callable


def run_with_keyboard_interrupt(main_func: Callable[[], Awaitable[Any]]) -> Any:
    """
    Run an async main function with graceful KeyboardInterrupt handling.

    Wraps asyncio.run() so Ctrl+C exits cleanly. Returns whatever main_func
    returns.

    Args:
        main_func: The async main function to run
    """
    try:
        return asyncio.run(main_func())
    except KeyboardInterrupt:
        print("\n🛑 Interrupted by user (Ctrl+C)")
        sys.exit(130)
