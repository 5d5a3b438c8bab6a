#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pipeline runner.

Sequences the stages for one run:
    art    -> extract folder.jpg for every directory
    icons  -> apply the strategy chosen for this desktop
    albums -> Albums/ symlink view
    tracks -> Tracks/ symlink view

Everything that can make the run impossible (missing library, missing
ffmpeg or gio) is checked in preflight(), before anything is written.
"""

import json
import shutil
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from stages.environment import EnvironmentHints, IconStrategy, resolve_strategy
from stages.extractor import ArtExtractor, make_backend
from stages.flattener import CollectionFlattener
from stages.icons import make_applier
from stages.scanner import PathScanner
from stages.errors import ConfigurationError

from .config import ConfigManager

STEPS = ('art', 'icons', 'albums', 'tracks')


@dataclass
class RunSummary:
    """Everything a run did, stage by stage"""
    music_dir: str
    strategy: Optional[str] = None
    stages: List[Dict[str, Any]] = field(default_factory=list)
    started_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def failures(self) -> int:
        return sum(stage.get("failed", 0) for stage in self.stages)

    def add(self, data: Dict[str, Any]) -> None:
        self.stages.append(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "music_dir": self.music_dir,
            "strategy": self.strategy,
            "started_at": self.started_at,
            "failures": self.failures,
            "stages": self.stages
        }

    def save(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    def print_report(self) -> None:
        print(f"\n=== Summary ===")
        print(f"Library: {self.music_dir}")
        if self.strategy:
            print(f"Icon strategy: {self.strategy}")
        for stage in self.stages:
            counts = ", ".join(f"{k} {v}" for k, v in sorted(stage["counts"].items()))
            print(f"{stage['stage']}: {stage['total']} ({counts or 'nothing to do'})")
            for failure in stage["failures"]:
                print(f"  FAILED: {failure['path']} - {failure['reason']}")
        if self.failures:
            print(f"Failures: {self.failures}")


class IconPipeline:
    """
    Runs the requested steps against one music directory.

    Args:
        config: ConfigManager with CLI overrides already applied
        hints: EnvironmentHints captured once at startup
        runner: Command runner for ffmpeg/gio (subprocess.run)
        which: Executable lookup (shutil.which)
    """

    def __init__(
        self,
        config: ConfigManager,
        hints: EnvironmentHints,
        runner: Callable = subprocess.run,
        which: Callable = shutil.which,
        dry_run: bool = False,
        quiet: bool = False
    ):
        self.config = config
        self.hints = hints
        self.runner = runner
        self.which = which
        self.dry_run = dry_run
        self.quiet = quiet
        self.strategy: Optional[IconStrategy] = None

    def select_steps(self, steps: Optional[Iterable[str]] = None, skip: Iterable[str] = ()) -> List[str]:
        requested = list(steps or STEPS)
        skip = {s.strip().lower() for s in skip if s.strip()}
        unknown = (set(requested) | skip) - set(STEPS)
        if unknown:
            raise ConfigurationError(f"Unknown step(s): {', '.join(sorted(unknown))} (expected {', '.join(STEPS)})")
        return [step for step in STEPS if step in requested and step not in skip]

    def build_extractor(self) -> ArtExtractor:
        try:
            backend = make_backend(self.config.backend, timeout=self.config.art_timeout, runner=self.runner)
        except ValueError as e:
            raise ConfigurationError(str(e))
        return ArtExtractor(
            backend=backend,
            marker_name=self.config.marker_name,
            workers=self.config.workers,
            dry_run=self.dry_run,
            quiet=self.quiet
        )

    def preflight(self, steps: List[str]) -> Dict[str, Any]:
        """
        Validate everything the run needs. Raises ConfigurationError.

        Returns:
            Prepared objects for the requested steps
        """
        prepared: Dict[str, Any] = {}

        if 'art' in steps or 'icons' in steps:
            prepared['scanner'] = PathScanner(
                self.config.music_dir,
                marker_name=self.config.marker_name,
                descriptor_name=self.config.descriptor_name,
                exclude=[self.config.albums_path, self.config.tracks_path]
            )

        if 'art' in steps:
            extractor = self.build_extractor()
            extractor.check_available(self.which)
            prepared['extractor'] = extractor

        if 'icons' in steps:
            self.strategy = resolve_strategy(self.config.strategy, self.hints)
            prepared['applier'] = make_applier(
                self.strategy,
                marker_name=self.config.marker_name,
                descriptor_name=self.config.descriptor_name,
                runner=self.runner,
                timeout=self.config.icon_timeout,
                dry_run=self.dry_run,
                quiet=self.quiet
            )

        if 'albums' in steps or 'tracks' in steps:
            prepared['flattener'] = CollectionFlattener(
                PathScanner(self.config.artists_path),
                albums_dir=self.config.albums_path,
                tracks_dir=self.config.tracks_path,
                dry_run=self.dry_run,
                quiet=self.quiet
            )

        return prepared

    def run(self, steps: Optional[Iterable[str]] = None, skip: Iterable[str] = ()) -> RunSummary:
        """Run the selected steps in order and return the summary"""
        steps = self.select_steps(steps, skip)
        prepared = self.preflight(steps)

        summary = RunSummary(music_dir=str(self.config.music_dir))
        if self.strategy:
            summary.strategy = self.strategy.value

        nodes = list(prepared['scanner'].scan()) if 'scanner' in prepared else []

        if 'art' in steps:
            self._banner("Extracting album art")
            summary.add(prepared['extractor'].process_batch(nodes).to_dict())

        if 'icons' in steps:
            self._banner(f"Setting folder icons ({self.strategy.value})")
            summary.add(prepared['applier'].process_batch(nodes).to_dict())

        if 'albums' in steps:
            self._banner("Creating album symlinks")
            summary.add(prepared['flattener'].flatten_albums().to_dict())

        if 'tracks' in steps:
            self._banner("Creating track symlinks")
            summary.add(prepared['flattener'].flatten_tracks().to_dict())

        return summary

    def _banner(self, message: str) -> None:
        print(f"=> {message}...")
