"""
tierforge — model tiering and oh-my-opencode config synthesis.

File: src/tierforge/__init__.py

Purpose
- Package root. Ranks a catalog of model identifiers into capability tiers,
  assigns a model to every agent and task category, and emits the
  oh-my-opencode configuration document.

Import boundary rules
- Must not have side effects at import time (no config loading, no logging init).
- Import engine entrypoints from their modules (``tierforge.assembler``,
  ``tierforge.ranking``, ``tierforge.resolver``, ``tierforge.roles``).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
