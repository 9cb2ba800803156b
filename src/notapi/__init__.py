"""
NotAPI - a small multi-featured public API gateway.

Serves Morse code and Roman numeral conversion, a SpamWatch ban-list check
and a Genius lyrics search under ``/api/{name}``, reports every successful
call to an operator Discord channel, and runs a Discord bot and a
keep-alive ping in the same process.

Example:
    ```bash
    curl "http://127.0.0.1:3000/api/morse?en=SOS"
    ```
"""

__version__ = "0.1.0"


def main():
    """Main entry point for NotAPI."""
    from notapi.main import main as _main
    return _main()


__all__ = ["main", "__version__"]
