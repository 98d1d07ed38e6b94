"""voono - provision a VPS with a Marzban node, a WARP tunnel and an nginx TLS front."""

__version__ = "0.1.0"
