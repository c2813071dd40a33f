"""Centralised version and naming information for the compositor.

This module is the single source of truth for application version and
human-readable metadata. The CLI parser, the default QSettings scope and
the packaged version (``pyproject.toml``) all read it.
"""
from __future__ import annotations


APP_NAME: str = "TransitionCompositor"
APP_EXE_NAME: str = "transition-compositor"
APP_VERSION: str = "1.0.0"
APP_DESCRIPTION: str = "TransitionCompositor - CPU compositor for sixteen image transitions, with sequence export."
APP_ORGANIZATION: str = "TransitionCompositor"


__all__ = [
    "APP_NAME",
    "APP_EXE_NAME",
    "APP_VERSION",
    "APP_DESCRIPTION",
    "APP_ORGANIZATION",
]
