"""kubelineage command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kubelineage`` script).
"""

from kubelineage.cli.main import cli

__all__ = ["cli"]
