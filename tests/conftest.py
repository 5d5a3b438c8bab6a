"""
Pytest fixtures for folder icon tests.

Provides:
- A small Artists/<artist>/<album> library under tmp_path
- A fake command runner standing in for ffmpeg and gio
- Helpers to write real ID3 tags with an embedded picture
"""

import subprocess
from pathlib import Path
from typing import List

import pytest
from mutagen.id3 import APIC, ID3, TIT2

JPEG_BYTES = b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01fake-cover\xff\xd9'


def write_tagged_mp3(path: Path, picture: bytes = JPEG_BYTES, title: str = 'Track') -> Path:
    """Write a tag-only .mp3 carrying an embedded front cover"""
    path.parent.mkdir(parents=True, exist_ok=True)
    tags = ID3()
    tags.add(TIT2(encoding=3, text=title))
    if picture is not None:
        tags.add(APIC(encoding=3, mime='image/jpeg', type=3, desc='Cover', data=picture))
    tags.save(str(path))
    return path


class FakeRunner:
    """
    Records commands instead of running them.

    ffmpeg calls copy `picture` into the output path when the input file
    is listed in `with_art`; otherwise they exit 1 like ffmpeg does for a
    file without an attached picture. gio calls succeed unless the
    directory is listed in `failing`.
    """

    def __init__(self, picture: bytes = JPEG_BYTES):
        self.picture = picture
        self.with_art: set = set()
        self.failing: set = set()
        self.calls: List[list] = []

    def __call__(self, command, capture_output=False, text=False, timeout=None):
        self.calls.append(list(command))
        tool = Path(command[0]).name

        if tool == 'ffmpeg':
            source = Path(command[command.index('-i') + 1])
            output = Path(command[-1])
            if str(source) in self.with_art:
                output.write_bytes(self.picture)
                return subprocess.CompletedProcess(command, 0, '', '')
            return subprocess.CompletedProcess(
                command, 1, '', f'{source}: Output file #0 does not contain any stream\n'
            )

        if tool == 'gio':
            if command[2] in self.failing:
                return subprocess.CompletedProcess(command, 1, '', 'gio: Operation not supported\n')
            return subprocess.CompletedProcess(command, 0, '', '')

        raise AssertionError(f"Unexpected command: {command}")

    def calls_for(self, tool: str) -> List[list]:
        return [c for c in self.calls if Path(c[0]).name == tool]


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def music_dir(tmp_path) -> Path:
    """
    music/
      Artists/
        Sia/
          1000 Forms of Fear/track.mp3
          This Is Acting/01 Bird Set Free.mp3, 02 Alive.flac
        Empty Artist/
          Nothing Here/
    """
    root = tmp_path / 'music'
    artists = root / 'Artists'

    fear = artists / 'Sia' / '1000 Forms of Fear'
    fear.mkdir(parents=True)
    (fear / 'track.mp3').write_bytes(b'audio')

    acting = artists / 'Sia' / 'This Is Acting'
    acting.mkdir(parents=True)
    (acting / '01 Bird Set Free.mp3').write_bytes(b'audio')
    (acting / '02 Alive.flac').write_bytes(b'audio')
    (acting / 'notes.txt').write_text('not audio')

    (artists / 'Empty Artist' / 'Nothing Here').mkdir(parents=True)
    return root
