#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Collection Flattener - Single-level symlink views of the library.

Albums/  "Artist - Album"            -> Artists/Artist/Album
Tracks/  "Artist - Album - 01 x.mp3" -> Artists/Artist/Album/01 x.mp3

Names that are already taken by a link to somewhere else get " (2)",
" (3)", ... The first path in traversal order keeps the plain name.
"""

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .base import BaseStage, StageSummary
from .errors import ConfigurationError
from .scanner import PathScanner

UNSAFE_CHARS = re.compile(r'[/\\:*?"<>|\x00-\x1f\x7f]')


class LinkStatus(Enum):
    CREATED = "created"
    EXISTING = "existing"
    WOULD_CREATE = "would_create"
    FAILED = "failed"


@dataclass
class SymlinkEntry:
    """One link in a flattened view"""
    name: str
    target: Path
    status: LinkStatus
    renamed: bool = False
    reason: Optional[str] = None

    @property
    def path(self) -> Path:
        return self.target

    @property
    def failed(self) -> bool:
        return self.status == LinkStatus.FAILED


@dataclass
class FlattenReport:
    """Result of one flattening pass"""
    destination: Path
    summary: StageSummary
    entries: List[SymlinkEntry] = field(default_factory=list)

    @property
    def renamed(self) -> int:
        return sum(1 for e in self.entries if e.renamed)

    def to_dict(self) -> Dict:
        data = self.summary.to_dict()
        data["destination"] = str(self.destination)
        data["renamed"] = self.renamed
        return data


def sanitize_filename(name: str) -> str:
    """Replace characters that cannot appear in a link name"""
    return UNSAFE_CHARS.sub('_', name.strip())


def numbered(name: str, number: int, keep_extension: bool = False) -> str:
    """'Name' -> 'Name (2)'; with keep_extension, 'a.mp3' -> 'a (2).mp3'"""
    if number < 2:
        return name
    if keep_extension:
        stem, ext = os.path.splitext(name)
        if stem:
            return f"{stem} ({number}){ext}"
    return f"{name} ({number})"


class CollectionFlattener(BaseStage):
    """
    Build the Albums/ and Tracks/ views.

    Each pass keeps its own name table (name -> target). It is only
    written from the pass loop, in scanner order.
    """

    def __init__(
        self,
        scanner: PathScanner,
        albums_dir: str | Path,
        tracks_dir: str | Path,
        dry_run: bool = False,
        quiet: bool = False
    ):
        super().__init__(quiet=quiet)
        self.scanner = scanner
        self.albums_dir = Path(albums_dir).expanduser().absolute()
        self.tracks_dir = Path(tracks_dir).expanduser().absolute()
        self.dry_run = dry_run
        self._pass = "Albums"
        self._destination: Optional[Path] = None
        self._keep_extension = False
        self._claimed: Dict[str, Path] = {}

    @property
    def name(self) -> str:
        return self._pass

    def album_links(self) -> Iterable[Tuple[str, Path]]:
        for artist_dir, album_dir in self.scanner.albums():
            yield sanitize_filename(f"{artist_dir.name} - {album_dir.name}"), album_dir

    def track_links(self) -> Iterable[Tuple[str, Path]]:
        for artist_dir, album_dir, track in self.scanner.tracks():
            yield sanitize_filename(f"{artist_dir.name} - {album_dir.name} - {track.name}"), track.path

    def flatten_albums(self) -> FlattenReport:
        """Link every Artist/Album directory into the albums view"""
        return self._run("Albums", self.albums_dir, self.album_links(), keep_extension=False)

    def flatten_tracks(self) -> FlattenReport:
        """Link every track of every album into the tracks view"""
        return self._run("Tracks", self.tracks_dir, self.track_links(), keep_extension=True)

    def _run(self, pass_name: str, destination: Path, links, keep_extension: bool) -> FlattenReport:
        self._pass = pass_name
        self._destination = destination
        self._keep_extension = keep_extension
        self._claimed = {}

        if not self.dry_run:
            try:
                destination.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ConfigurationError(f"Cannot create {destination}: {e}")

        entries: List[SymlinkEntry] = []
        summary = self.process_batch(links, callback=lambda item, entry: entries.append(entry))

        report = FlattenReport(destination=destination, summary=summary, entries=entries)
        if report.renamed:
            self.log(f"{report.renamed} name collision(s) resolved with a numeric suffix")
        return report

    def process(self, item: Tuple[str, Path]) -> SymlinkEntry:
        base_name, target = item
        return self.link(base_name, target)

    def link(self, base_name: str, target: Path) -> SymlinkEntry:
        """Create (or find) the link for target, disambiguating the name if needed"""
        number = 1
        while True:
            name = numbered(base_name, number, self._keep_extension)
            link_path = self._destination / name
            renamed = number > 1
            claimed = self._claimed.get(name)

            if claimed is None and self._points_to(link_path, target):
                self._claimed[name] = target
                return SymlinkEntry(name, target, LinkStatus.EXISTING, renamed=renamed)

            if claimed is None and not os.path.lexists(link_path):
                self._claimed[name] = target
                return self._create(link_path, name, target, renamed)

            number += 1

    def _create(self, link_path: Path, name: str, target: Path, renamed: bool) -> SymlinkEntry:
        if renamed:
            self.log(f"Name collision: using '{name}' for {target}")

        if self.dry_run:
            self.log(f"WOULD LINK: {link_path} -> {target}")
            return SymlinkEntry(name, target, LinkStatus.WOULD_CREATE, renamed=renamed)

        try:
            os.symlink(target, link_path)
        except OSError as e:
            self.log_error(f"Failed to create symlink {link_path}: {e}")
            return SymlinkEntry(name, target, LinkStatus.FAILED, renamed=renamed, reason=str(e))

        self.log(f"Created symlink: {link_path} -> {target}")
        return SymlinkEntry(name, target, LinkStatus.CREATED, renamed=renamed)

    def _points_to(self, link_path: Path, target: Path) -> bool:
        if not link_path.is_symlink():
            return False
        try:
            return os.path.realpath(link_path) == os.path.realpath(target)
        except OSError:
            return False
