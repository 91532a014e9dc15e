"""Candidate relevance ranking: vector similarity, affinity and experience signals."""

__version__ = "0.1.0"
