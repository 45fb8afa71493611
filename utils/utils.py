"""
Utilities for the self-tallying election engine: logging setup, operation
timing and result persistence.
"""

import json
import logging
import platform
import time
from dataclasses import dataclass, asdict, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import psutil

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'


@dataclass
class PerformanceMetrics:
    operation: str
    duration_seconds: float
    cpu_percent: float
    memory_mb: float
    timestamp: float
    additional_data: Dict[str, Any] = field(default_factory=dict)


def setup_logging(log_level: str = "INFO", log_file: Optional[Path] = None,
                  log_dir: Path = Path("logs")) -> logging.Logger:
    """Route all loggers to a timestamped file under log_dir and to stderr"""
    if log_file is None:
        log_file = Path(log_dir) / \
            f"election_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Clear existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized. Log file: {log_file}")

    return logger


class PerformanceMonitor:
    """Collects per-operation timings, CPU and RSS"""

    def __init__(self):
        self.metrics: List[PerformanceMetrics] = []
        self.process = psutil.Process()

    def start_operation(self, operation_name: str) -> 'OperationContext':
        return OperationContext(self, operation_name)

    def record_metric(self, metric: PerformanceMetrics):
        self.metrics.append(metric)

    def get_summary(self) -> Dict[str, Any]:
        """Per-operation statistics"""
        if not self.metrics:
            return {
                'total_operations': 0,
                'total_duration': 0.0,
                'operations': {}
            }

        operation_groups: Dict[str, List[PerformanceMetrics]] = {}
        for metric in self.metrics:
            operation_groups.setdefault(metric.operation, []).append(metric)

        summary = {
            'total_operations': len(self.metrics),
            'operations': {}
        }

        for op_name, metrics in operation_groups.items():
            durations = np.array([m.duration_seconds for m in metrics])
            memory_usages = [m.memory_mb for m in metrics if m.memory_mb > 0]
            total = float(durations.sum())

            summary['operations'][op_name] = {
                'count': len(metrics),
                'total_duration': total,
                'avg_duration': float(durations.mean()),
                'min_duration': float(durations.min()),
                'max_duration': float(durations.max()),
                'std_duration': float(durations.std()) if len(durations) > 1 else 0.0,
                'peak_memory_mb': max(memory_usages) if memory_usages else 0.0,
                'throughput_ops_per_sec': len(metrics) / total if total > 0 else 0.0
            }

        summary['total_duration'] = sum(
            op_data['total_duration']
            for op_data in summary['operations'].values()
        )

        return summary

class OperationContext:
    """Context manager recording one PerformanceMetrics entry"""

    def __init__(self, monitor: PerformanceMonitor, operation_name: str):
        self.monitor = monitor
        self.operation_name = operation_name
        self.start_time = None
        self.start_memory = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.monitor.process.cpu_percent()
        self.start_memory = self.monitor.process.memory_info().rss / 1024 / 1024
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.perf_counter() - self.start_time
        end_memory = self.monitor.process.memory_info().rss / 1024 / 1024

        self.monitor.record_metric(PerformanceMetrics(
            operation=self.operation_name,
            duration_seconds=duration,
            cpu_percent=self.monitor.process.cpu_percent(),
            memory_mb=max(self.start_memory, end_memory),
            timestamp=time.time(),
            additional_data={'exception': exc_type is not None}
        ))


def get_system_info() -> Dict[str, Any]:
    vm = psutil.virtual_memory()
    return {
        'platform': platform.platform(),
        'python_version': platform.python_version(),
        'machine': platform.machine(),
        'cpu_count_logical': psutil.cpu_count(logical=True),
        'total_memory_gb': round(vm.total / 1024 / 1024 / 1024, 2),
        'timestamp': datetime.now().isoformat()
    }


def _to_serializable(obj):
    if hasattr(obj, '__dataclass_fields__'):
        return _to_serializable(asdict(obj))
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): _to_serializable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_serializable(item) for item in obj]
    if isinstance(obj, (np.integer, np.floating)):
        return obj.item()
    if isinstance(obj, int) and obj.bit_length() > 53:
        # Group elements lose precision in JSON readers that parse doubles
        return hex(obj)
    if isinstance(obj, bytes):
        return obj.hex()
    if isinstance(obj, (Path, datetime)):
        return str(obj)
    return obj


def save_results(results: Dict[str, Any], filepath: Path) -> Path:
    """Write results as JSON with metadata, plus a plain-text summary beside it"""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    document = {
        'metadata': {
            'generated_at': datetime.now().isoformat(),
            'system_info': get_system_info(),
        },
        'data': _to_serializable(results)
    }

    with open(filepath, 'w') as f:
        json.dump(document, f, indent=2, default=str)

    summary_path = filepath.parent / f"{filepath.stem}_summary.txt"
    with open(summary_path, 'w') as f:
        f.write(create_results_summary(results))

    logging.info(f"Results saved to {filepath}")
    logging.info(f"Summary saved to {summary_path}")
    return summary_path


def create_results_summary(results: Dict[str, Any]) -> str:
    """Human-readable tally summary"""
    summary = []
    summary.append("=" * 80)
    summary.append("SELF-TALLYING ELECTION - RESULTS SUMMARY")
    summary.append("=" * 80)
    summary.append(
        f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    summary.append("")

    counts = results.get('counts') or {}
    if counts:
        total_votes = sum(counts.values())
        summary.append("ELECTION TALLY:")
        for name, count in counts.items():
            percentage = (count / total_votes * 100) if total_votes > 0 else 0
            summary.append(f"  {name}: {count} votes ({percentage:.1f}%)")
        summary.append(f"  Total Votes: {total_votes}")
        summary.append(f"  Winner: {results.get('winner') or 'no winner'}")
        summary.append("")

    benchmark = results.get('benchmark')
    if benchmark:
        summary.append(f"BENCHMARK ({benchmark['trials']} elections, {benchmark['num_voters']} voters, "
                       f"{benchmark['num_candidates']} candidates, {benchmark['group']}):")
        summary.append(f"  Mean: {format_duration(benchmark['mean_time'])}  "
                       f"Median: {format_duration(benchmark['median_time'])}  "
                       f"Min/Max: {format_duration(benchmark['min_time'])} / {format_duration(benchmark['max_time'])}")
        summary.append(f"  Throughput: {benchmark['ballots_per_sec']:.2f} ballots/sec")
        summary.append("")

    failures = results.get('failures') or []
    if failures:
        summary.append("REJECTED OPERATIONS:")
        for failure in failures:
            summary.append(f"  {failure}")
        summary.append("")

    if 'performance' in results and results['performance']:
        summary.append("PERFORMANCE METRICS:")
        for op_name, op_data in results['performance'].get('operations', {}).items():
            summary.append(
                f"  {op_name}: {op_data['count']} x {format_duration(op_data['avg_duration'])}")
        summary.append("")

    summary.append("=" * 80)
    return "\n".join(summary)


def create_performance_report(monitor: PerformanceMonitor) -> str:
    """One row per timed election phase"""
    summary = monitor.get_summary()
    columns = f"{'phase':<16}{'count':>7}{'avg':>11}{'min':>11}{'max':>11}{'std':>11}{'ops/s':>10}{'peak MB':>10}"

    report = ["=" * len(columns), "SELF-TALLYING ELECTION - PERFORMANCE REPORT", "=" * len(columns)]
    report.append(
        f"{summary['total_operations']} operations in {format_duration(summary['total_duration'])}")
    report.append("")

    if not summary['operations']:
        report.append("No performance data available.")
    else:
        report.append(columns)
        report.append("-" * len(columns))
        for op_name, op in summary['operations'].items():
            report.append(
                f"{op_name:<16}{op['count']:>7}"
                f"{format_duration(op['avg_duration']):>11}"
                f"{format_duration(op['min_duration']):>11}"
                f"{format_duration(op['max_duration']):>11}"
                f"{format_duration(op['std_duration']):>11}"
                f"{op['throughput_ops_per_sec']:>10.1f}"
                f"{op['peak_memory_mb']:>10.1f}")

    report.append("=" * len(columns))
    return "\n".join(report)


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds*1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds % 60:.1f}s"


__all__ = [
    'PerformanceMetrics',
    'PerformanceMonitor',
    'OperationContext',
    'setup_logging',
    'get_system_info',
    'save_results',
    'create_results_summary',
    'create_performance_report',
    'format_duration',
]
