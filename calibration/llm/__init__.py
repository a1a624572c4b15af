"""Relay to the locally configured chat-completion endpoint."""
