# Pipeline Stages
# Scanning, art extraction, icon application and flattening

from .errors import (
    FolderIconsError,
    ConfigurationError,
    NotFoundError,
    MissingToolError,
    ExtractionFailure,
    IconWriteFailure
)
from .base import BaseStage, StageSummary
from .scanner import PathScanner, DirectoryNode, AudioFile, AUDIO_EXTENSIONS
from .extractor import ArtExtractor, ExtractionResult, ExtractionStatus, FfmpegBackend, MutagenBackend, make_backend
from .environment import EnvironmentHints, IconStrategy, classify, resolve_strategy
from .icons import DescriptorFileApplier, MetadataTagApplier, IconResult, IconStatus, make_applier
from .flattener import CollectionFlattener, FlattenReport, SymlinkEntry, LinkStatus, sanitize_filename

__all__ = [
    'FolderIconsError',
    'ConfigurationError',
    'NotFoundError',
    'MissingToolError',
    'ExtractionFailure',
    'IconWriteFailure',
    'BaseStage',
    'StageSummary',
    'PathScanner',
    'DirectoryNode',
    'AudioFile',
    'AUDIO_EXTENSIONS',
    'ArtExtractor',
    'ExtractionResult',
    'ExtractionStatus',
    'FfmpegBackend',
    'MutagenBackend',
    'make_backend',
    'EnvironmentHints',
    'IconStrategy',
    'classify',
    'resolve_strategy',
    'DescriptorFileApplier',
    'MetadataTagApplier',
    'IconResult',
    'IconStatus',
    'make_applier',
    'CollectionFlattener',
    'FlattenReport',
    'SymlinkEntry',
    'LinkStatus',
    'sanitize_filename'
]
