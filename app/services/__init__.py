"""Clients for the remote movie catalog providers."""
