"""Creature registry source package.

This package contains:
- config: Configuration loading and validation
- creatures: Creature records, genetics, storage and the lifecycle service
"""

from __future__ import annotations

__all__: list[str] = []
