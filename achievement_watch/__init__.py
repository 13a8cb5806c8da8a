"""
Steam achievement watcher.

Follows the Steam console log to detect when games start and stop, polls
achievement state while a game runs, and routes session and unlock events
to popup, webhook and home-automation sinks.
"""

__version__ = "0.1.0"
__author__ = "Achievement Watch Team"
