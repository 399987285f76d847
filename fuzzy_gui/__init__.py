"""
fuzzy_gui - PySide6 GUI for the Fuzzy Rename Tool
"""

from .gui_entry import main

__all__ = ["main"]
