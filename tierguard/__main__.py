"""
tierguard Entry Point — Run with: python -m tierguard

Usage:
    python -m tierguard bypass setup
    python -m tierguard bypass activate [--duration 4h] [--idle 30m]
    python -m tierguard bypass status
    python -m tierguard check --path PATH [--operation TEXT]
"""

import sys


def main():
    """Main entry point for tierguard."""
    from tierguard.cli import main as cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main() or 0)
