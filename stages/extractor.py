#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Art Extractor - Pulls embedded cover art into a per-directory marker image.

For each directory the first audio file (by name) is asked for its first
attached picture, which is written next to it as folder.jpg. A directory
that already has a marker image is left alone, so re-running is cheap.

Two backends:
- ffmpeg  (default) copies the attached picture stream with the ffmpeg CLI
- mutagen reads the picture from the tags in-process
"""

import base64
import shutil
import subprocess
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional

import mutagen
from mutagen.flac import Picture
from mutagen.id3 import ID3, ID3NoHeaderError

from .base import BaseStage, StageSummary
from .errors import ExtractionFailure, MissingToolError
from .scanner import MARKER_NAME, AudioFile, DirectoryNode


class ExtractionStatus(Enum):
    EXTRACTED = "extracted"
    SKIPPED = "skipped"
    NO_SOURCE = "no_source"
    FAILED = "failed"


@dataclass
class ExtractionResult:
    """Outcome of extracting art for one directory"""
    path: Path
    status: ExtractionStatus
    source: Optional[Path] = None
    reason: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == ExtractionStatus.FAILED


class FfmpegBackend:
    """Copy the first attached picture stream with ffmpeg"""

    name = "ffmpeg"

    def __init__(self, executable: str = "ffmpeg", timeout: float = 60, runner: Callable = subprocess.run):
        self.executable = executable
        self.timeout = timeout
        self.runner = runner

    def command(self, source: Path, output: Path) -> list:
        return [
            self.executable, '-y', '-loglevel', 'error',
            '-i', str(source),
            '-an', '-vcodec', 'copy', '-vframes', '1', '-f', 'image2',
            str(output)
        ]

    def extract(self, source: Path, output: Path) -> None:
        try:
            result = self.runner(
                self.command(source, output),
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except FileNotFoundError:
            raise ExtractionFailure(f"{self.executable} not found")
        except subprocess.TimeoutExpired:
            raise ExtractionFailure(f"{self.executable} timed out after {self.timeout} seconds")

        if result.returncode != 0:
            lines = (result.stderr or '').strip().splitlines()
            raise ExtractionFailure(lines[-1] if lines else f"{self.executable} exited with {result.returncode}")

        if not output.exists() or output.stat().st_size == 0:
            raise ExtractionFailure("No embedded picture")


class MutagenBackend:
    """Read the first embedded picture from the tags"""

    name = "mutagen"

    def extract(self, source: Path, output: Path) -> None:
        data = self.read_picture(source)
        if not data:
            raise ExtractionFailure("No embedded picture")
        with open(output, 'wb') as f:
            f.write(data)

    def read_picture(self, source: Path) -> Optional[bytes]:
        """Return the bytes of the first embedded picture, or None"""
        if source.suffix.lower() == '.mp3':
            # Tags only: the MPEG stream itself is irrelevant here
            try:
                return self._from_id3(ID3(str(source)))
            except ID3NoHeaderError:
                return None
            except mutagen.MutagenError as e:
                raise ExtractionFailure(f"Cannot read tags: {e}")

        try:
            audio = mutagen.File(str(source))
        except mutagen.MutagenError as e:
            raise ExtractionFailure(f"Cannot read tags: {e}")
        if audio is None:
            raise ExtractionFailure("Unrecognized audio format")

        pictures = getattr(audio, 'pictures', None)
        if pictures:
            return pictures[0].data

        tags = audio.tags
        if not tags:
            return None

        if isinstance(tags, ID3):
            return self._from_id3(tags)

        if 'covr' in tags and tags['covr']:
            return bytes(tags['covr'][0])

        if 'metadata_block_picture' in tags:
            for encoded in tags['metadata_block_picture']:
                try:
                    return Picture(base64.b64decode(encoded)).data
                except (ValueError, mutagen.MutagenError):
                    continue

        return None

    def _from_id3(self, tags: ID3) -> Optional[bytes]:
        frames = tags.getall('APIC')
        return frames[0].data if frames else None


BACKENDS = {
    'ffmpeg': FfmpegBackend,
    'mutagen': MutagenBackend,
}


def make_backend(name: str, timeout: float = 60, runner: Callable = subprocess.run):
    """Build an extraction backend by name"""
    if name == 'ffmpeg':
        return FfmpegBackend(timeout=timeout, runner=runner)
    if name == 'mutagen':
        return MutagenBackend()
    raise ValueError(f"Unknown extraction backend: {name} (expected one of {sorted(BACKENDS)})")


class ArtExtractor(BaseStage):
    """
    Extract cover art for every directory of the library.

    Failures are per directory: a corrupt file is logged and the walk
    moves on to the next directory.
    """

    def __init__(self, backend=None, marker_name: str = MARKER_NAME, workers: int = 1,
                 dry_run: bool = False, quiet: bool = False):
        super().__init__(quiet=quiet)
        self.dry_run = dry_run
        self.backend = backend or FfmpegBackend()
        self.marker_name = marker_name
        self.workers = max(1, workers)

    @property
    def name(self) -> str:
        return "Art"

    def check_available(self, which: Callable = shutil.which) -> None:
        """Raise MissingToolError if the backend needs an executable that is not installed"""
        executable = getattr(self.backend, 'executable', None)
        if executable and not which(executable):
            raise MissingToolError(executable, "needed to extract album art")

    def select_source(self, node: DirectoryNode) -> Optional[AudioFile]:
        """First audio file by name, or None"""
        if not node.audio_files:
            return None
        return sorted(node.audio_files, key=lambda a: a.path.name)[0]

    def process(self, node: DirectoryNode) -> ExtractionResult:
        return self.extract(node)

    def extract(self, node: DirectoryNode) -> ExtractionResult:
        """
        Extract marker art for a single directory.

        Args:
            node: DirectoryNode from the scanner

        Returns:
            ExtractionResult; never raises for per-directory problems
        """
        output = node.path / self.marker_name

        if node.has_marker_art or output.exists():
            node.has_marker_art = True
            self.log(f"Album art already exists in {node.path} (skipping)")
            return ExtractionResult(node.path, ExtractionStatus.SKIPPED)

        source = self.select_source(node)
        if source is None:
            self.log(f"No music files found in {node.path} (skipping)")
            return ExtractionResult(node.path, ExtractionStatus.NO_SOURCE)

        if self.dry_run:
            self.log(f"WOULD EXTRACT: {source.path} -> {output}")
            node.has_marker_art = True
            return ExtractionResult(node.path, ExtractionStatus.EXTRACTED, source=source.path)

        try:
            self.backend.extract(source.path, output)
        except (ExtractionFailure, OSError) as e:
            self._discard(output)
            self.log_error(f"Failed to extract album art from {source.path}: {e}")
            return ExtractionResult(node.path, ExtractionStatus.FAILED, source=source.path, reason=str(e))

        node.has_marker_art = True
        self.log(f"Album art extracted to {output}")
        return ExtractionResult(node.path, ExtractionStatus.EXTRACTED, source=source.path)

    def process_batch(self, nodes: Iterable, callback: Optional[Callable] = None) -> StageSummary:
        """Same as BaseStage.process_batch, optionally fanned out over a thread pool"""
        if self.workers == 1:
            return super().process_batch(nodes, callback)

        summary = StageSummary(stage=self.name)
        self._start_time = time.time()
        nodes = list(nodes)

        # map() yields in submission order, so reporting stays in scan order
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            for node, result in zip(nodes, pool.map(self.extract, nodes)):
                self.record(summary, result)
                if callback:
                    callback(node, result)

        summary.duration = time.time() - self._start_time
        return summary

    def _discard(self, output: Path) -> None:
        try:
            if output.exists():
                output.unlink()
        except OSError as e:
            self.log_error(f"Could not remove partial file {output}: {e}")
