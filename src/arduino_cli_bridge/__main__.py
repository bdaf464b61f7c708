"""Arduino CLI Bridge entry point.

Supports: python -m arduino_cli_bridge
"""

from .app import main

if __name__ == "__main__":
    main()
