"""TickScope - real-time timing analysis of mechanical clock ticks."""

__version__ = "0.1.0"
