"""
Entry point for running OdinKit CLI as a module.

Usage: python -m odinkit [command] [options]
"""

from odinkit.cli.parser import main

if __name__ == "__main__":
    main()
