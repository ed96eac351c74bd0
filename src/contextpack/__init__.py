"""
Context Pack - A tool for packing a directory tree into one LLM-ready blob.

This package walks a directory, honours ``.gitignore`` rules, drops binary
files, and renders the remaining text files as ``File: <path>`` blocks
together with a rough token estimate.
"""

__version__ = "0.1.0"
__author__ = "Context Pack Team"

from .core import (  # noqa: E402
    ConfigFileError,
    ContextPackError,
    FileReadError,
    IgnoreRule,
    IncludedFile,
    InvalidRootError,
    OutputError,
    TraversalError,
    Walker,
    estimate_tokens,
    load_extra_patterns,
    load_ignore_rules,
    render,
    render_text,
    walk,
)

__all__ = [
    "ConfigFileError",
    "ContextPackError",
    "FileReadError",
    "IgnoreRule",
    "IncludedFile",
    "InvalidRootError",
    "OutputError",
    "TraversalError",
    "Walker",
    "estimate_tokens",
    "load_extra_patterns",
    "load_ignore_rules",
    "render",
    "render_text",
    "walk",
]
