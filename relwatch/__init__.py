"""relwatch: GitHub release and tag notifications for Telegram."""

__version__ = "0.1.0"
