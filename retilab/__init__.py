"""Socket exercises over TCP and UDP: authentication, routing, chat, shops, notes and games."""

__version__ = "0.1.0"