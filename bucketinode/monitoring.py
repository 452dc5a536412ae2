"""A file system wrapper that counts requests and errors and times operations."""

from __future__ import annotations

import bisect
import threading
import time
from typing import Any, Callable, Optional

from .error_mapping import FILE_SYSTEM_OPERATIONS

__all__ = [
    "CounterVec",
    "FILE_SYSTEM_OPERATIONS",
    "HistogramVec",
    "Monitoring",
    "counter_fs_errors",
    "counter_fs_requests",
    "exponential_buckets",
    "latency",
    "with_monitoring",
]


def exponential_buckets(start: float, factor: float, count: int) -> list[float]:
    """``count`` bucket bounds, the first ``start``, each ``factor`` times the last."""
    if count < 1:
        raise ValueError("exponential_buckets needs a positive count")
    if start <= 0:
        raise ValueError("exponential_buckets needs a positive start value")
    if factor <= 1:
        raise ValueError("exponential_buckets needs a factor greater than 1")
    bounds = []
    bound = start
    for _ in range(count):
        bounds.append(bound)
        bound *= factor
    return bounds


class CounterVec:
    """Counters partitioned by the value of one label."""

    def __init__(self, name: str, description: str, label: str = "method") -> None:
        self.name = name
        self.description = description
        self.label = label
        self._values: dict[str, float] = {}
        self._mu = threading.Lock()

    def inc(self, label: str) -> None:
        """Add one to the counter for ``label``."""
        with self._mu:
            self._values[label] = self._values.get(label, 0) + 1

    def value(self, label: str) -> float:
        """The current count for ``label``; zero if never incremented."""
        with self._mu:
            return self._values.get(label, 0)


class HistogramVec:
    """Histograms over fixed bucket bounds, partitioned by one label."""

    def __init__(
        self,
        name: str,
        description: str,
        buckets: list[float],
        label: str = "method",
    ) -> None:
        bounds = list(buckets)
        if any(b >= a for a, b in zip(bounds[1:], bounds)):
            raise ValueError("histogram buckets must be strictly increasing")
        self.name = name
        self.description = description
        self.buckets = bounds
        self.label = label
        self._counts: dict[str, list[int]] = {}
        self._mu = threading.Lock()

    def observe(self, label: str, value: float) -> None:
        """Record one observation of ``value`` for ``label``."""
        index = bisect.bisect_left(self.buckets, value)
        with self._mu:
            counts = self._counts.setdefault(label, [0] * (len(self.buckets) + 1))
            counts[index] += 1

    def counts(self, label: str) -> list[int]:
        """Cumulative counts of observations at or below each bound.

        The list has one entry per bound and a final entry for +Inf, which is
        the total number of observations.
        """
        with self._mu:
            raw = list(self._counts.get(label, [0] * (len(self.buckets) + 1)))
        total = 0
        cumulative = []
        for c in raw:
            total += c
            cumulative.append(total)
        return cumulative


counter_fs_requests = CounterVec(
    "bucketinode_fs_requests", "Number of requests per file system API."
)
counter_fs_errors = CounterVec(
    "bucketinode_fs_errors", "Number of errors per file system API."
)
# 32 buckets: [0.1ms, 0.15ms, ..., 28.8s, +Inf]
latency = HistogramVec(
    "bucketinode_fs_latency",
    "The latency of a file system operation.",
    exponential_buckets(0.1, 1.5, 32),
)

_TIMED_OPERATIONS = frozenset({"look_up_inode", "open_file", "read_file"})


def _monitored(op_name: str) -> Callable[..., Any]:
    def method(self: Monitoring, *args: Any, **kwargs: Any) -> Any:
        return self._call(op_name, *args, **kwargs)

    method.__name__ = op_name
    method.__doc__ = f"Call ``{op_name}`` on the wrapped file system, counting it."
    return method


class Monitoring:
    """Wraps a file system, counting requests and errors per operation.

    The latency of ``look_up_inode``, ``open_file`` and ``read_file`` is
    recorded in whole milliseconds, whether or not they fail.
    """

    def __init__(
        self,
        wrapped: Any,
        requests: Optional[CounterVec] = None,
        errors: Optional[CounterVec] = None,
        latency_histogram: Optional[HistogramVec] = None,
    ) -> None:
        self._wrapped = wrapped
        self._requests = requests if requests is not None else counter_fs_requests
        self._errors = errors if errors is not None else counter_fs_errors
        self._latency = (
            latency_histogram if latency_histogram is not None else latency
        )

    def _call(self, op_name: str, *args: Any, **kwargs: Any) -> Any:
        self._requests.inc(op_name)
        start = time.monotonic()
        try:
            return getattr(self._wrapped, op_name)(*args, **kwargs)
        except Exception:
            self._errors.inc(op_name)
            raise
        finally:
            if op_name in _TIMED_OPERATIONS:
                elapsed_ms = float(int((time.monotonic() - start) * 1000))
                self._latency.observe(op_name, elapsed_ms)

    def destroy(self) -> None:
        """Destroy the wrapped file system, counting the request."""
        self._requests.inc("destroy")
        self._wrapped.destroy()

    stat_fs = _monitored("stat_fs")
    look_up_inode = _monitored("look_up_inode")
    get_inode_attributes = _monitored("get_inode_attributes")
    set_inode_attributes = _monitored("set_inode_attributes")
    forget_inode = _monitored("forget_inode")
    mk_dir = _monitored("mk_dir")
    mk_node = _monitored("mk_node")
    create_file = _monitored("create_file")
    create_link = _monitored("create_link")
    create_symlink = _monitored("create_symlink")
    rename = _monitored("rename")
    rm_dir = _monitored("rm_dir")
    unlink = _monitored("unlink")
    open_dir = _monitored("open_dir")
    read_dir = _monitored("read_dir")
    release_dir_handle = _monitored("release_dir_handle")
    open_file = _monitored("open_file")
    read_file = _monitored("read_file")
    write_file = _monitored("write_file")
    sync_file = _monitored("sync_file")
    flush_file = _monitored("flush_file")
    release_file_handle = _monitored("release_file_handle")
    read_symlink = _monitored("read_symlink")
    remove_xattr = _monitored("remove_xattr")
    get_xattr = _monitored("get_xattr")
    list_xattr = _monitored("list_xattr")
    set_xattr = _monitored("set_xattr")
    fallocate = _monitored("fallocate")


def with_monitoring(wrapped: Any) -> Monitoring:
    """Wrap a file system so that it reports to the module's metrics."""
    return Monitoring(wrapped)