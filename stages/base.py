#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Base class for pipeline stages.
The extractor and both icon appliers inherit from this.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional
import time


@dataclass
class StageSummary:
    """Per-stage tally of directory outcomes"""
    stage: str
    counts: Dict[str, int] = field(default_factory=dict)
    failures: List[Dict[str, str]] = field(default_factory=list)
    duration: float = 0.0

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def failed(self) -> int:
        return len(self.failures)

    def record(self, status: str, path: str, reason: Optional[str] = None, failed: bool = False) -> None:
        self.counts[status] = self.counts.get(status, 0) + 1
        if failed:
            self.failures.append({"path": path, "reason": reason or "unknown error"})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "stage": self.stage,
            "total": self.total,
            "counts": dict(self.counts),
            "failed": self.failed,
            "failures": list(self.failures),
            "duration": round(self.duration, 3)
        }


class BaseStage(ABC):
    """
    Abstract base class for per-directory stages.

    Stages take one DirectoryNode at a time and return a result object
    with `path`, `status` (an Enum), `reason` and a `failed` flag.
    A failing directory never stops the batch.
    """

    def __init__(self, quiet: bool = False):
        self.quiet = quiet
        self._start_time: Optional[float] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Stage name identifier"""
        pass

    @abstractmethod
    def process(self, node):
        """
        Process a single directory.

        Args:
            node: DirectoryNode from the scanner

        Returns:
            Result object for the directory
        """
        pass

    def process_batch(self, nodes: Iterable, callback: Optional[Callable] = None) -> StageSummary:
        """
        Process every node, in order.

        Args:
            nodes: Iterable of DirectoryNode values
            callback: Optional callback(node, result) called after each node

        Returns:
            StageSummary for the batch
        """
        summary = StageSummary(stage=self.name)
        self._start_time = time.time()

        for node in nodes:
            result = self.process(node)
            self.record(summary, result)
            if callback:
                callback(node, result)

        summary.duration = time.time() - self._start_time
        return summary

    def record(self, summary: StageSummary, result) -> None:
        summary.record(result.status.value, str(result.path), result.reason, result.failed)

    def log(self, message: str) -> None:
        """Log a message with stage name prefix"""
        if not self.quiet:
            print(f"[{self.name}] {message}")

    def log_error(self, message: str) -> None:
        """Log an error message"""
        print(f"[{self.name}] ERROR: {message}")
