"""
One-time OpenCV runtime initialization.

The first caller performs the setup; concurrent first callers wait on the
same shared future instead of re-running it. A failed initialization is
re-raised to every waiter and retried on the next call.
"""

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Optional

import cv2

from src.rectification.config_loader import EngineConfig

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_engine_future: Optional["Future[VisionEngine]"] = None


@dataclass(frozen=True)
class VisionEngine:
    """Process-wide OpenCV runtime settings."""

    opencv_version: str
    num_threads: int
    optimized: bool


def _initialize(config: EngineConfig) -> VisionEngine:
    cv2.setUseOptimized(config.use_optimized)
    if config.num_threads is not None:
        cv2.setNumThreads(config.num_threads)

    engine = VisionEngine(
        opencv_version=cv2.__version__,
        num_threads=cv2.getNumThreads(),
        optimized=cv2.useOptimized(),
    )
    logger.info(
        f"OpenCV {engine.opencv_version} initialized "
        f"(threads={engine.num_threads}, optimized={engine.optimized})"
    )
    return engine


def get_engine(config: Optional[EngineConfig] = None) -> VisionEngine:
    """
    Return the shared engine, initializing it on first use.

    Args:
        config: Runtime settings, only read by the initializing call.

    Raises:
        Exception: Whatever the initialization raised, for every waiter.
    """
    global _engine_future

    with _lock:
        future = _engine_future
        owner = future is None
        if owner:
            future = Future()
            _engine_future = future

    if owner:
        try:
            future.set_result(_initialize(config or EngineConfig()))
        except Exception as e:
            logger.error(f"OpenCV initialization failed: {e}")
            with _lock:
                _engine_future = None
            future.set_exception(e)

    return future.result()


def reset_engine() -> None:
    """Forget the shared engine so the next call initializes again."""
    global _engine_future
    with _lock:
        _engine_future = None
