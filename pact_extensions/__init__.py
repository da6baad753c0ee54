"""
pact extension manager — install, update and run pact CLI extensions.
"""

__version__ = "0.1.0"
