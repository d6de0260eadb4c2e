"""Entry point for `python -m kubelineage`.

Usage:
    python -m kubelineage dependents manifests.yaml --kind Deployment --name web -n default
"""

from __future__ import annotations

from kubelineage.cli import cli

cli()
