"""Progress rendering, prompts, line-splitting writers and end-to-end test helpers for compose tooling."""

__version__ = "0.1.0"