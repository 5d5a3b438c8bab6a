"""
Tests for the two icon strategies.
"""

import os

import pytest

from stages.environment import IconStrategy
from stages.icons import (
    CUSTOM_ICON_KEY,
    DescriptorFileApplier,
    IconApplier,
    IconStatus,
    MetadataTagApplier,
    make_applier,
)
from stages.scanner import PathScanner


@pytest.fixture
def album(music_dir):
    path = music_dir / 'Artists' / 'Sia' / '1000 Forms of Fear'
    (path / 'folder.jpg').write_bytes(b'jpeg')
    return path


def node_for(path):
    return PathScanner(path).read_node(path)


class TestMetadataTag:
    """Tests for MetadataTagApplier"""

    def test_sets_custom_icon(self, album, runner):
        applier = MetadataTagApplier(runner=runner)

        result = applier.apply_metadata(node_for(album))

        assert result.status == IconStatus.ICON_SET
        command = runner.calls_for('gio')[0]
        assert command[:4] == ['gio', 'set', str(album), CUSTOM_ICON_KEY]
        assert command[4] == (album / 'folder.jpg').as_uri()
        assert command[4].startswith('file:///')

    def test_directory_without_art_is_noop(self, music_dir, runner):
        artist = music_dir / 'Artists' / 'Sia'

        result = MetadataTagApplier(runner=runner).apply_metadata(node_for(artist))

        assert result.status == IconStatus.NO_ART
        assert runner.calls == []

    def test_walk_continues_past_directories_without_art(self, music_dir, album, runner):
        nested = music_dir / 'Artists' / 'Sia' / 'This Is Acting'
        (nested / 'folder.jpg').write_bytes(b'jpeg')

        summary = MetadataTagApplier(runner=runner).process_batch(PathScanner(music_dir).scan())

        tagged = [c[2] for c in runner.calls_for('gio')]
        assert tagged == [str(album), str(nested)]
        assert summary.counts == {'no_art': 5, 'icon_set': 2}

    def test_gio_failure_is_logged_and_walk_continues(self, music_dir, album, runner):
        nested = music_dir / 'Artists' / 'Sia' / 'This Is Acting'
        (nested / 'folder.jpg').write_bytes(b'jpeg')
        runner.failing.add(str(album))

        summary = MetadataTagApplier(runner=runner).process_batch(PathScanner(music_dir).scan())

        assert summary.counts['failed'] == 1
        assert summary.counts['icon_set'] == 1
        assert summary.failures[0]['reason'] == 'gio: Operation not supported'

    def test_missing_gio_binary_is_failure(self, album):
        def missing(*args, **kwargs):
            raise FileNotFoundError('gio')

        result = MetadataTagApplier(runner=missing).apply_metadata(node_for(album))

        assert result.status == IconStatus.FAILED

    def test_dry_run_does_not_call_gio(self, album, runner):
        result = MetadataTagApplier(runner=runner, dry_run=True).apply_metadata(node_for(album))

        assert result.status == IconStatus.ICON_SET
        assert runner.calls == []


class TestDescriptorFile:
    """Tests for DescriptorFileApplier"""

    def test_writes_two_line_descriptor(self, album):
        node = node_for(album)

        result = DescriptorFileApplier().apply_descriptor(node)

        assert result.status == IconStatus.ICON_SET
        assert (album / '.directory').read_text() == "[Desktop Entry]\nIcon=./folder.jpg\n"
        assert node.has_descriptor

    def test_written_even_without_art(self, music_dir):
        artist = music_dir / 'Artists' / 'Sia'

        result = DescriptorFileApplier().apply_descriptor(node_for(artist))

        assert result.status == IconStatus.ICON_SET
        assert 'Icon=./folder.jpg' in (artist / '.directory').read_text()

    def test_every_directory_gets_one(self, music_dir):
        nodes = list(PathScanner(music_dir).scan())

        DescriptorFileApplier().process_batch(nodes)

        for node in nodes:
            assert (node.path / '.directory').is_file()

    def test_overwrites_stale_descriptor(self, album):
        (album / '.directory').write_text("[Desktop Entry]\nIcon=folder-music\n")

        DescriptorFileApplier().apply_descriptor(node_for(album))

        assert (album / '.directory').read_text() == "[Desktop Entry]\nIcon=./folder.jpg\n"

    def test_second_run_is_unchanged(self, album):
        applier = DescriptorFileApplier()
        applier.apply_descriptor(node_for(album))
        mtime = os.stat(album / '.directory').st_mtime_ns

        result = applier.apply_descriptor(node_for(album))

        assert result.status == IconStatus.UNCHANGED
        assert os.stat(album / '.directory').st_mtime_ns == mtime

    def test_custom_marker_name(self, album):
        DescriptorFileApplier(marker_name='.folder.jpg').apply_descriptor(node_for(album))

        assert (album / '.directory').read_text() == "[Desktop Entry]\nIcon=./.folder.jpg\n"

    @pytest.mark.skipif(hasattr(os, 'geteuid') and os.geteuid() == 0, reason='root ignores permissions')
    def test_unwritable_directory_fails_only_that_directory(self, music_dir):
        locked = music_dir / 'Artists' / 'Sia'
        locked.chmod(0o555)
        try:
            summary = DescriptorFileApplier().process_batch(PathScanner(music_dir).scan())
        finally:
            locked.chmod(0o755)

        assert summary.failed == 1
        assert summary.failures[0]['path'] == str(locked)
        assert (locked / '1000 Forms of Fear' / '.directory').exists()

    def test_dry_run_writes_nothing(self, album):
        DescriptorFileApplier(dry_run=True).apply_descriptor(node_for(album))

        assert not (album / '.directory').exists()


class TestMakeApplier:
    """Tests for make_applier()"""

    def test_metadata_strategy(self, runner):
        applier = make_applier(IconStrategy.METADATA_TAG, runner=runner, descriptor_name='.x')
        assert isinstance(applier, MetadataTagApplier)
        assert applier.runner is runner

    def test_descriptor_strategy(self):
        applier = make_applier(IconStrategy.DESCRIPTOR_FILE, descriptor_name='.x', marker_name='cover.jpg')
        assert isinstance(applier, DescriptorFileApplier)
        assert applier.descriptor_name == '.x'
        assert applier.marker_name == 'cover.jpg'

    def test_base_applier_is_abstract(self):
        with pytest.raises(TypeError):
            IconApplier()
