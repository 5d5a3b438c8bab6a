#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Icon Appliers - Point each folder's icon at its marker image.

MetadataTagApplier: `gio set <dir> metadata::custom-icon file://.../folder.jpg`
    Only directories that have marker art are annotated.
DescriptorFileApplier: writes `.directory` into every directory
    ("[Desktop Entry]" / "Icon=./folder.jpg"), art or not, so folders
    that get art later pick it up without another icon pass.
"""

import subprocess
from abc import abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from .base import BaseStage
from .environment import METADATA_TOOL, IconStrategy
from .errors import IconWriteFailure
from .scanner import DESCRIPTOR_NAME, MARKER_NAME, DirectoryNode

CUSTOM_ICON_KEY = 'metadata::custom-icon'


class IconStatus(Enum):
    ICON_SET = "icon_set"
    UNCHANGED = "unchanged"
    NO_ART = "no_art"
    FAILED = "failed"


@dataclass
class IconResult:
    """Outcome of applying an icon to one directory"""
    path: Path
    status: IconStatus
    reason: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == IconStatus.FAILED


class IconApplier(BaseStage):
    """Common base for the two icon strategies"""

    strategy: IconStrategy

    def __init__(self, marker_name: str = MARKER_NAME, dry_run: bool = False, quiet: bool = False):
        super().__init__(quiet=quiet)
        self.marker_name = marker_name
        self.dry_run = dry_run

    @property
    def name(self) -> str:
        return "Icons"

    def process(self, node: DirectoryNode) -> IconResult:
        return self.apply(node)

    @abstractmethod
    def apply(self, node: DirectoryNode) -> IconResult:
        """Apply this strategy to one directory"""


class MetadataTagApplier(IconApplier):
    """Register marker art as a custom icon in the gio metadata store"""

    strategy = IconStrategy.METADATA_TAG

    def __init__(
        self,
        marker_name: str = MARKER_NAME,
        executable: str = METADATA_TOOL,
        timeout: float = 30,
        runner: Callable = subprocess.run,
        dry_run: bool = False,
        quiet: bool = False
    ):
        super().__init__(marker_name=marker_name, dry_run=dry_run, quiet=quiet)
        self.executable = executable
        self.timeout = timeout
        self.runner = runner

    def icon_uri(self, node: DirectoryNode) -> str:
        return (node.path / self.marker_name).absolute().as_uri()

    def set_custom_icon(self, path: Path, uri: str) -> None:
        """Run gio set; raise IconWriteFailure if it does not succeed"""
        command = [self.executable, 'set', str(path), CUSTOM_ICON_KEY, uri]
        try:
            result = self.runner(command, capture_output=True, text=True, timeout=self.timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise IconWriteFailure(str(e))

        if result.returncode != 0:
            lines = (result.stderr or '').strip().splitlines()
            raise IconWriteFailure(lines[-1] if lines else f"{self.executable} exited with {result.returncode}")

    def apply(self, node: DirectoryNode) -> IconResult:
        return self.apply_metadata(node)

    def apply_metadata(self, node: DirectoryNode) -> IconResult:
        if not node.has_marker_art:
            self.log(f"Skipping '{node.path}': No '{self.marker_name}' found.")
            return IconResult(node.path, IconStatus.NO_ART)

        uri = self.icon_uri(node)
        if self.dry_run:
            self.log(f"WOULD SET: {node.path} -> {uri}")
            return IconResult(node.path, IconStatus.ICON_SET)

        try:
            self.set_custom_icon(node.path, uri)
        except IconWriteFailure as e:
            self.log_error(f"Could not set icon for '{node.path}': {e}")
            return IconResult(node.path, IconStatus.FAILED, reason=str(e))

        self.log(f"Custom icon set for '{node.path}'.")
        return IconResult(node.path, IconStatus.ICON_SET)


class DescriptorFileApplier(IconApplier):
    """Write a .directory file into every directory"""

    strategy = IconStrategy.DESCRIPTOR_FILE

    def __init__(
        self,
        marker_name: str = MARKER_NAME,
        descriptor_name: str = DESCRIPTOR_NAME,
        dry_run: bool = False,
        quiet: bool = False
    ):
        super().__init__(marker_name=marker_name, dry_run=dry_run, quiet=quiet)
        self.descriptor_name = descriptor_name

    @property
    def content(self) -> str:
        return f"[Desktop Entry]\nIcon=./{self.marker_name}\n"

    def write_descriptor(self, path: Path) -> bool:
        """
        Write the descriptor file.

        Returns:
            False if the file already had the expected content

        Raises:
            IconWriteFailure: the file could not be read or written
        """
        try:
            if path.is_file() and path.read_text(encoding='utf-8') == self.content:
                return False
            with open(path, 'w', encoding='utf-8') as f:
                f.write(self.content)
        except (OSError, UnicodeDecodeError) as e:
            raise IconWriteFailure(str(e))
        return True

    def apply(self, node: DirectoryNode) -> IconResult:
        return self.apply_descriptor(node)

    def apply_descriptor(self, node: DirectoryNode) -> IconResult:
        descriptor = node.path / self.descriptor_name

        if self.dry_run:
            self.log(f"WOULD CREATE: {descriptor}")
            return IconResult(node.path, IconStatus.ICON_SET)

        try:
            written = self.write_descriptor(descriptor)
        except IconWriteFailure as e:
            self.log_error(f"Could not write {descriptor}: {e}")
            return IconResult(node.path, IconStatus.FAILED, reason=str(e))

        node.has_descriptor = True
        if not written:
            self.log(f"Up to date: {descriptor}")
            return IconResult(node.path, IconStatus.UNCHANGED)

        self.log(f"Created {descriptor}")
        return IconResult(node.path, IconStatus.ICON_SET)


def make_applier(strategy: IconStrategy, **options) -> IconApplier:
    """
    Build the applier for a strategy.

    Options not understood by the chosen applier are ignored, so callers
    can pass one option set for either strategy.
    """
    marker_name = options.get('marker_name', MARKER_NAME)
    dry_run = options.get('dry_run', False)
    quiet = options.get('quiet', False)

    if strategy == IconStrategy.METADATA_TAG:
        return MetadataTagApplier(
            marker_name=marker_name,
            runner=options.get('runner', subprocess.run),
            timeout=options.get('timeout', 30),
            dry_run=dry_run,
            quiet=quiet
        )
    return DescriptorFileApplier(
        marker_name=marker_name,
        descriptor_name=options.get('descriptor_name', DESCRIPTOR_NAME),
        dry_run=dry_run,
        quiet=quiet
    )
