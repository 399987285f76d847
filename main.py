#!/usr/bin/env python3
"""
Fuzzy Rename Tool - Main Entry

Supports:
- GUI mode (default startup)
- CLI mode (--cli or -c parameter)

Usage:
    python main.py                                   # GUI mode (default)
    python main.py --cli                             # CLI interactive mode
    python main.py -c match ./dir -f names.txt       # CLI command mode
    python main.py -c candidates ./dir -t ./ref      # CLI command mode
    python main.py -c recover ./dir                  # CLI command mode
"""

import sys


def main():
    """Main entry point"""
    # Check if CLI should be started
    if "--cli" in sys.argv or "-c" in sys.argv:
        argv = [arg for arg in sys.argv[1:] if arg not in ("--cli", "-c")]

        # CLI mode
        from fuzzy_cli import main as cli_main
        return cli_main(argv)

    # Default to starting GUI
    try:
        from fuzzy_gui import main as gui_main
    except ImportError as e:
        print("Error: Unable to start GUI, please ensure PySide6 is installed")
        print(f"Detailed error: {e}")
        print("\nInstall command: pip install PySide6")
        print("\nTo use CLI mode, run:")
        print("    python main.py --cli")
        print("or  python main.py -c")
        return 1
    return gui_main()


if __name__ == "__main__":
    sys.exit(main())
