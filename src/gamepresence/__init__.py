"""GamePresence - console account linking and presence service backend."""

__version__ = "0.1.0"
