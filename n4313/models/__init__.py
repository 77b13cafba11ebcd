"""
Data models for the scanner driver.

- ScannerMode: trigger / continuous operating mode
- ScannerConfig: validated driver settings
"""

from n4313.models.records import ScannerConfig, ScannerMode

__all__ = [
    "ScannerConfig",
    "ScannerMode",
]
