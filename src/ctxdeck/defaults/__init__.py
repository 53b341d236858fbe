"""Packaged YAML defaults for ctxdeck."""
