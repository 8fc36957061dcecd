"""Terminal now-playing readout and play queue editor."""

__version__ = "0.1.0"
