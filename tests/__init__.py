"""
Tests for the achievement watcher.

This package contains tests for:
- Console log parsing and tailing, including rotation
- Session tracking and exclusion policy
- Achievement diffing and rarity classification
- Notification routing and sinks
- Configuration loading and the command line
"""
