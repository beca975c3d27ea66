"""
Entry point for running the autocomplete service as a module.

Usage:
    python -m sevenmote.autocomplete [--account-id ID]
"""

from sevenmote.autocomplete.service import main

if __name__ == '__main__':
    main()
