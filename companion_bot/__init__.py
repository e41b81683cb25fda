"""Minecraft companion bot - presence-aware connection lifecycle, chat directives and behavior loops"""

__version__ = "0.1.0"
