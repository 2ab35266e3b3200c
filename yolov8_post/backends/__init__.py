"""
Optional inference backends for yolov8_post.

Kept in a separate module so the core (normalize/decode/suppress) stays
lightweight and can be used without installing an inference runtime.
"""

from __future__ import annotations

__all__ = []
