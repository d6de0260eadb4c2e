"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ResolverConfig:
    """Relationship resolver configuration."""

    hostname_label: str = "kubernetes.io/hostname"
    node_aliases: bool = True


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "warning"
    format: str = "json"


@dataclass
class KubeLineageConfig:
    """Top-level kubelineage configuration."""

    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    log: LogConfig = field(default_factory=LogConfig)
