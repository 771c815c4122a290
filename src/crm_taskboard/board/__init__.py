"""Task board model, stores, and engine.

This package holds the task model, the ``TaskStore`` contract with its
in-memory and YAML-file implementations, and the board engine that the API
and CLI drive.
"""
