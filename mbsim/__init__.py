"""Host-side model of a small board's pins, audio routing, flash file system, UART and data log."""

__version__ = "0.1.0"

__all__ = [
    "antigravity",
    "audiorouting",
    "datalog",
    "filesystem",
    "flash",
    "pins",
    "uart",
]