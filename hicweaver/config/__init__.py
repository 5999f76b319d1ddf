"""
HiCWeaver v0.1.0

Configuration management for HiCWeaver.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from .parser import ConfigParser, ConfigValidationError

__all__ = ["ConfigParser", "ConfigValidationError"]
