"""chatkeep — durable conversation archive with self-healing backups."""

__version__ = "0.1.0"
