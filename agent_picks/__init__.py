"""Agent picks pipeline: parse, validate, persist, settle and score agent predictions."""

__version__ = "0.1.0"
