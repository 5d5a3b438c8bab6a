#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exception types for the folder icon pipeline.

Configuration errors are fatal and raised before anything is written.
Extraction and icon-write failures are per-directory and get folded into
the run summary by the stage that catches them.
"""

from typing import Optional


class FolderIconsError(Exception):
    """Base class for all pipeline errors"""


class ConfigurationError(FolderIconsError):
    """Fatal: the run cannot start (bad root, missing tool)"""


class NotFoundError(ConfigurationError):
    """Library root is missing or is not a directory"""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Directory does not exist: {path}")


class MissingToolError(ConfigurationError):
    """A tool required by the selected strategy is not installed"""

    def __init__(self, tool: str, reason: Optional[str] = None):
        self.tool = tool
        message = f"{tool} is required but not installed"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ExtractionFailure(FolderIconsError):
    """Cover art could not be pulled from an audio file"""


class IconWriteFailure(FolderIconsError):
    """A descriptor file or metadata annotation could not be written"""
