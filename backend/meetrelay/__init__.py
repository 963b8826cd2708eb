"""Signaling relay for peer-to-peer remote support sessions."""
