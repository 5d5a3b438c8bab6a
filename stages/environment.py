#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Desktop environment detection.

Decides, once per run, how folder icons are applied:
- GTK-family desktops read a custom-icon annotation from the gio metadata store
- KDE-family desktops read a .directory file inside each folder
Unknown desktops get the metadata annotation if gio is installed, and
.directory files otherwise.
"""

import os
import shutil
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Optional

from .errors import ConfigurationError, MissingToolError

METADATA_TOOL = 'gio'

GTK_DESKTOPS = frozenset({
    'GNOME', 'PANTHEON', 'UNITY', 'BUDGIE', 'CINNAMON', 'POP', 'ZORIN',
    'UBUNTU', 'REGOLITH', 'XFCE', 'DEEPIN', 'MATE', 'COSMIC',
})

KDE_DESKTOPS = frozenset({'KDE', 'LXQT', 'PLASMA', 'NEON'})

SESSION_VARIABLES = ('XDG_CURRENT_DESKTOP', 'DESKTOP_SESSION')


class IconStrategy(Enum):
    METADATA_TAG = "metadata-tag"
    DESCRIPTOR_FILE = "descriptor-file"


class DesktopFamily(Enum):
    GTK = "gtk"
    KDE = "kde"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class EnvironmentHints:
    """Snapshot of what the host tells us about its desktop"""
    session: str = "unknown"
    metadata_tool_present: bool = False

    @classmethod
    def capture(cls, environ: Optional[Mapping[str, str]] = None, which: Callable = shutil.which) -> "EnvironmentHints":
        """
        Read the session name and look up gio on PATH.

        Args:
            environ: Environment mapping (defaults to os.environ)
            which: Executable lookup (defaults to shutil.which)
        """
        if environ is None:
            environ = os.environ

        session = ''
        for variable in SESSION_VARIABLES:
            session = environ.get(variable, '')
            if session:
                break
        if not session:
            session = os.path.basename(environ.get('GDMSESSION', '') or 'unknown')

        return cls(session=session, metadata_tool_present=which(METADATA_TOOL) is not None)


def _mentions(session: str, names) -> bool:
    return any(name in session for name in names)


def desktop_family(session: str) -> DesktopFamily:
    """Match the upper-cased session against the desktop tables, GTK first"""
    session = session.upper()
    if _mentions(session, GTK_DESKTOPS):
        return DesktopFamily.GTK
    if _mentions(session, KDE_DESKTOPS):
        return DesktopFamily.KDE
    return DesktopFamily.UNKNOWN


def classify(hints: EnvironmentHints) -> IconStrategy:
    """
    Pick the icon strategy for the whole run.

    Raises:
        MissingToolError: GTK desktop without gio
    """
    family = desktop_family(hints.session)

    if family == DesktopFamily.GTK:
        if not hints.metadata_tool_present:
            raise MissingToolError(METADATA_TOOL, f"GTK desktop '{hints.session}' stores folder icons as gio metadata")
        return IconStrategy.METADATA_TAG

    if family == DesktopFamily.KDE:
        return IconStrategy.DESCRIPTOR_FILE

    if hints.metadata_tool_present:
        return IconStrategy.METADATA_TAG
    return IconStrategy.DESCRIPTOR_FILE


def resolve_strategy(requested: str, hints: EnvironmentHints) -> IconStrategy:
    """
    Honour a forced strategy, or classify when requested is 'auto'.

    A forced metadata-tag still needs gio.
    """
    if requested in (None, '', 'auto'):
        return classify(hints)

    try:
        strategy = IconStrategy(requested)
    except ValueError:
        choices = ", ".join(s.value for s in IconStrategy)
        raise ConfigurationError(f"Unknown icon strategy: {requested} (expected auto, {choices})")

    if strategy == IconStrategy.METADATA_TAG and not hints.metadata_tool_present:
        raise MissingToolError(METADATA_TOOL)
    return strategy
