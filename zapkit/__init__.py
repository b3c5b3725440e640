"""Building blocks for structured, leveled logging: levels, sinks, writers, clocks and stack traces."""

__version__ = "0.1.0"