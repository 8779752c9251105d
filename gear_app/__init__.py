"""Gear Concierge application bootstrap."""
