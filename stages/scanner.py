#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Path Scanner - Walks the music library.

Responsibilities:
- Traverse the directory tree parent-before-children
- List the audio files each directory directly contains
- Note whether marker art and a descriptor file are already present
- Enumerate artist/album directories and tracks for the flattener
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from .errors import NotFoundError

AUDIO_EXTENSIONS = frozenset({'mp3', 'flac', 'm4a', 'ogg', 'aac', 'wma', 'wav', 'aiff'})

MARKER_NAME = 'folder.jpg'
DESCRIPTOR_NAME = '.directory'


@dataclass(frozen=True)
class AudioFile:
    """Audio file found directly inside a directory"""
    path: Path
    extension: str

    @property
    def name(self) -> str:
        return self.path.name


@dataclass
class DirectoryNode:
    """One directory of the library, as seen by a single scan"""
    path: Path
    audio_files: List[AudioFile] = field(default_factory=list)
    subdirectories: List[Path] = field(default_factory=list)
    has_marker_art: bool = False
    has_descriptor: bool = False

    @property
    def name(self) -> str:
        return self.path.name


class PathScanner:
    """
    Depth-first walker over a library root.

    The walk uses an explicit stack. Children are visited in name order,
    so the traversal order is stable for a given snapshot of the tree.
    Symlinked directories and anything in `exclude` are not descended.
    """

    def __init__(
        self,
        root: str | Path,
        audio_extensions=AUDIO_EXTENSIONS,
        marker_name: str = MARKER_NAME,
        descriptor_name: str = DESCRIPTOR_NAME,
        exclude: Iterable = ()
    ):
        self.root = Path(root).expanduser().absolute()
        if not self.root.is_dir():
            raise NotFoundError(self.root)
        self.audio_extensions = frozenset(ext.lower().lstrip('.') for ext in audio_extensions)
        self.marker_name = marker_name
        self.descriptor_name = descriptor_name
        self.exclude = {Path(p).expanduser().absolute() for p in exclude}

    def scan(self) -> Iterator[DirectoryNode]:
        """Yield every directory under the root, parents first."""
        stack = [self.root]

        while stack:
            path = stack.pop()
            node = self.read_node(path)
            if node is None:
                continue
            yield node
            stack.extend(reversed(node.subdirectories))

    def read_node(self, path: Path) -> Optional[DirectoryNode]:
        """Build a DirectoryNode for one directory (non-recursive)"""
        entries = self._list(path)
        if entries is None:
            return None

        node = DirectoryNode(path=path)
        for item in entries:
            if item.is_symlink():
                continue
            if item.is_dir():
                if item not in self.exclude:
                    node.subdirectories.append(item)
            elif item.is_file():
                audio = self.as_audio_file(item)
                if audio:
                    node.audio_files.append(audio)
                elif item.name == self.marker_name:
                    node.has_marker_art = True
                elif item.name == self.descriptor_name:
                    node.has_descriptor = True

        return node

    def albums(self) -> Iterator[Tuple[Path, Path]]:
        """Yield (artist_dir, album_dir) pairs exactly two levels below the root"""
        for artist_dir in self._child_dirs(self.root):
            for album_dir in self._child_dirs(artist_dir):
                yield artist_dir, album_dir

    def tracks(self) -> Iterator[Tuple[Path, Path, AudioFile]]:
        """Yield (artist_dir, album_dir, track) for every audio file in an album"""
        for artist_dir, album_dir in self.albums():
            for item in self._list(album_dir) or []:
                if item.is_file() and not item.is_symlink():
                    audio = self.as_audio_file(item)
                    if audio:
                        yield artist_dir, album_dir, audio

    def as_audio_file(self, path: Path) -> Optional[AudioFile]:
        ext = path.suffix.lower().lstrip('.')
        if ext in self.audio_extensions:
            return AudioFile(path=path, extension=ext)
        return None

    def _child_dirs(self, path: Path) -> List[Path]:
        return [item for item in self._list(path) or [] if item.is_dir() and not item.is_symlink()]

    def _list(self, path: Path) -> Optional[List[Path]]:
        try:
            return sorted(path.iterdir(), key=lambda p: p.name)
        except OSError as e:
            print(f"[Scanner] ERROR: Cannot read {path}: {e}")
            return None
