"""Integrations with documentation toolchains."""
