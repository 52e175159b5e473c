# utils/performance.py
from __future__ import annotations
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
from typing import Callable, List

import psutil

logger = logging.getLogger(__name__)

# Keep the history bounded for long-lived dashboard sessions
MAX_HISTORY = 100


@dataclass
class PerformanceMetrics:
    operation: str
    execution_time: float
    memory_usage_mb: float
    events_processed: int
    throughput_events_per_sec: float


class PerformanceMonitor:
    """Monitor pipeline stages over large exports"""

    def __init__(self):
        self.metrics_history: List[PerformanceMetrics] = []

    @contextmanager
    def monitor_operation(self, operation_name: str, event_count: int = 0):
        """Context manager to monitor performance of operations"""
        start_time = time.perf_counter()
        start_memory = memory_usage_mb()

        try:
            yield
        finally:
            execution_time = time.perf_counter() - start_time
            memory_usage = memory_usage_mb() - start_memory
            throughput = event_count / execution_time if execution_time > 0 else 0

            metrics = PerformanceMetrics(
                operation=operation_name,
                execution_time=execution_time,
                memory_usage_mb=memory_usage,
                events_processed=event_count,
                throughput_events_per_sec=throughput
            )

            self.metrics_history.append(metrics)
            del self.metrics_history[:-MAX_HISTORY]
            logger.info(f"[PERF] {operation_name}: {execution_time:.2f}s, {throughput:.0f} events/sec, {memory_usage:.1f}MB")

    def last(self, operation_name: str):
        for metrics in reversed(self.metrics_history):
            if metrics.operation == operation_name:
                return metrics
        return None


def performance_timer(func: Callable) -> Callable:
    """Decorator to time function execution"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        logger.debug(f"[TIMER] {func.__name__}: {time.perf_counter() - start:.3f}s")
        return result
    return wrapper


def memory_usage_mb() -> float:
    """Get current memory usage in MB"""
    return psutil.Process().memory_info().rss / 1024 / 1024
