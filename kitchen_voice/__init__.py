"""
Kitchen Voice - a voice-driven cooking assistant.

Turns what someone says while cooking into timer and step commands,
and everything else into a conversation with Claude.
"""

__version__ = "1.0.0"
