"""
Core metrics and monitoring decorators for the course assistant.

This module defines Prometheus metrics and decorators for tracking:
- Inbound message outcomes (discarded, notice, shortcut, replied, failed)
- Turn processing time
- Error rates
- External API latency (LLM)
"""

import time
import functools
import inspect
import logging
from typing import Optional, Callable
from prometheus_client import Counter, Gauge, Histogram

logger = logging.getLogger(__name__)

MESSAGE_COUNT = Counter(
    'assistant_messages_total',
    'Inbound messages by outcome',
    ['outcome']  # discarded, notice, shortcut, replied, failed
)

TURN_PROCESSING_TIME = Histogram(
    'assistant_turn_duration_seconds',
    'Time spent handling one inbound message, lock wait included',
    buckets=[0.01, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, float("inf")]
)

ERROR_COUNT = Counter(
    'error_total',
    'Total number of errors',
    ['type', 'location']  # type: e.g., 'llm', 'orchestrator'; location: specific component
)

LLM_REQUEST_TIME = Histogram(
    'llm_request_duration_seconds',
    'Time spent waiting for LLM API',
    ['model'],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, float("inf")]
)

ACTIVE_SESSIONS = Gauge(
    'assistant_sessions',
    'Conversations currently tracked by the session store'
)

def _observe(metric: Histogram, labels: Optional[Callable], args: tuple, duration: float, func_name: str) -> None:
    if labels and args:
        # For instance methods, first arg is 'self'
        metric.labels(**labels(args[0])).observe(duration)
    else:
        metric.observe(duration)
    logger.debug(
        f"Function {func_name} execution time: {duration:.2f} seconds",
        extra={'extra_fields': {'duration': duration, 'function': func_name}}
    )

def track_latency(metric: Histogram, labels: Optional[Callable] = None) -> Callable:
    """
    A decorator factory that tracks the execution time of a function using a Prometheus Histogram.

    Works for both plain functions and coroutine functions.

    Args:
        metric (Histogram): The Prometheus Histogram to record the timing in
        labels (Callable, optional): Function that receives `self` and returns the labels dictionary

    Returns:
        Callable: The decorated function
    """
    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start_time = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    _observe(metric, labels, args, time.perf_counter() - start_time, func.__name__)
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                _observe(metric, labels, args, time.perf_counter() - start_time, func.__name__)
        return wrapper
    return decorator

def track_errors(error_type: str, location: str) -> Callable:
    """
    A decorator factory that counts and logs exceptions raised by a coroutine function, then re-raises them.

    Args:
        error_type (str): Type of error (e.g., 'llm', 'orchestrator')
        location (str): Where the error occurred

    Returns:
        Callable: The decorated coroutine function

    Example:
        @track_errors('llm', 'chat_model')
        async def complete(self, messages):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                ERROR_COUNT.labels(
                    type=error_type,
                    location=location
                ).inc()
                logger.error(
                    f"Error in {location} ({error_type}): {str(e)}",
                    extra={'extra_fields': {
                        'error_type': error_type,
                        'location': location,
                        'error': str(e)
                    }},
                )
                raise
        return wrapper
    return decorator
