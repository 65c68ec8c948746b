"""Discord bot that summarizes a channel's messages over a time window."""

__version__ = "0.1.0"
