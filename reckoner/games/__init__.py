"""
Games module - Game-specific data.

Each game has its own subpackage with:
- Recipe catalog (cards expressed as grouped actions)
"""
