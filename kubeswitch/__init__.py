"""Configuration, search index, caches, hook state, landscape layout and command-line helpers for switching kubeconfig contexts."""

__version__ = "0.1.0"