"""Logging setup for kubelineage."""
