"""playerstore: durable persistence for game-server player and world state."""

__version__ = "0.4.0"
