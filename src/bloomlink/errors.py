"""Recoverable failures raised by pipeline stages.

Precondition violations (non-positive k, empty chains, ...) raise
``ValueError`` instead; those are fatal to the immediate call.
"""

from __future__ import annotations


class BloomLinkError(Exception):
    """Base class for failures the pipeline reports and routes around."""


class ClusteringError(BloomLinkError):
    """Clustering could not produce an assignment (empty or degenerate input)."""


class SignatureError(BloomLinkError):
    """A cluster representative vector could not be generated."""
