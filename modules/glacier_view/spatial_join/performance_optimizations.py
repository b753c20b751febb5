"""Performance Monitoring for Spatial Joins

Tracks wall time, memory growth and CPU use of the containment joins, which
dominate the cost of a view refresh, so slow region families show up in the
logs and in refresh metadata.
"""

import logging
import time
import psutil
from typing import Dict, Any, List
from dataclasses import dataclass
from contextlib import contextmanager

logger = logging.getLogger(__name__)

SLOW_OPERATION_SECONDS = 5.0


@dataclass
class PerformanceMetrics:
    """Performance metrics for one monitored operation."""
    operation_name: str
    execution_time: float
    memory_usage_mb: float
    cpu_usage_percent: float
    records_processed: int
    processing_rate: float

    def get_summary(self) -> Dict[str, Any]:
        """Get performance summary dictionary."""
        return {
            "operation": self.operation_name,
            "execution_time_seconds": round(self.execution_time, 3),
            "memory_usage_mb": round(self.memory_usage_mb, 2),
            "cpu_usage_percent": round(self.cpu_usage_percent, 2),
            "records_processed": self.records_processed,
            "processing_rate_per_second": round(self.processing_rate, 2)
        }


class PerformanceMonitor:
    """Performance monitoring for spatial join operations.

    One monitor lives for one refresh; each region family join is recorded as
    a separate operation.
    """

    def __init__(self):
        self.metrics_history: List[PerformanceMetrics] = []
        self.process = psutil.Process()

    @contextmanager
    def monitor_operation(self, operation_name: str, records_count: int = 0):
        """Context manager recording metrics for the wrapped block.

        Args:
            operation_name: Name of the operation being monitored
            records_count: Number of records being processed
        """
        start_time = time.perf_counter()
        start_memory = self.process.memory_info().rss / 1024 / 1024  # MB
        start_cpu_times = self.process.cpu_times()

        try:
            yield
        finally:
            execution_time = time.perf_counter() - start_time
            end_memory = self.process.memory_info().rss / 1024 / 1024  # MB
            end_cpu_times = self.process.cpu_times()

            cpu_seconds = ((end_cpu_times.user - start_cpu_times.user) +
                           (end_cpu_times.system - start_cpu_times.system))
            cpu_usage = cpu_seconds / execution_time * 100 if execution_time > 0 else 0.0
            processing_rate = records_count / execution_time if execution_time > 0 else 0.0

            metrics = PerformanceMetrics(
                operation_name=operation_name,
                execution_time=execution_time,
                memory_usage_mb=max(end_memory - start_memory, 0),
                cpu_usage_percent=cpu_usage,
                records_processed=records_count,
                processing_rate=processing_rate
            )
            self.metrics_history.append(metrics)

            if execution_time > SLOW_OPERATION_SECONDS:
                logger.warning(f"Slow operation detected: {operation_name} took {execution_time:.2f}s "
                               f"for {records_count} records ({processing_rate:.1f} records/sec)")
            else:
                logger.debug(f"Operation {operation_name}: {execution_time:.2f}s, "
                             f"{records_count} records, {processing_rate:.1f} records/sec")

    def get_performance_summary(self) -> Dict[str, Any]:
        """Summarize every operation recorded so far."""
        if not self.metrics_history:
            return {"message": "No performance data collected"}

        total_time = sum(m.execution_time for m in self.metrics_history)
        total_records = sum(m.records_processed for m in self.metrics_history)

        return {
            "total_operations": len(self.metrics_history),
            "total_execution_time": round(total_time, 2),
            "total_records_processed": total_records,
            "peak_memory_growth_mb": round(max(m.memory_usage_mb for m in self.metrics_history), 2),
            "operations": [m.get_summary() for m in self.metrics_history]
        }
