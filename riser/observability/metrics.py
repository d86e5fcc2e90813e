"""In-process compile metrics: no external deps."""

from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass, field


@dataclass
class MetricsCollector:
    compile_count: int = 0
    error_count: int = 0
    fault_count: int = 0
    strategy_counts: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    fallback_counts: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    error_kinds: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    latencies: list[int] = field(default_factory=list)
    _start_time: float = field(default_factory=time.time)

    def record_compile(
        self,
        strategy: str,
        fallbacks: list[str] | None = None,
        faults: int = 0,
        latency_ms: int = 0,
    ) -> None:
        self.compile_count += 1
        self.strategy_counts[strategy] += 1
        for fb in fallbacks or []:
            self.fallback_counts[fb] += 1
        self.fault_count += faults
        if latency_ms:
            self.latencies.append(latency_ms)
            if len(self.latencies) > 1000:
                self.latencies = self.latencies[-500:]

    def record_error(self, kind: str) -> None:
        self.error_count += 1
        self.error_kinds[kind] += 1

    def summary(self) -> dict:
        avg_latency = sum(self.latencies) / len(self.latencies) if self.latencies else 0
        return {
            "uptime_seconds": int(time.time() - self._start_time),
            "total_compiles": self.compile_count,
            "strategies": dict(self.strategy_counts),
            "fallbacks": dict(self.fallback_counts),
            "data_integrity_faults": self.fault_count,
            "errors": dict(self.error_kinds),
            "avg_latency_ms": int(avg_latency),
        }
