"""Routing: a path-pattern multiplexer plus the adapter that puts
context-aware handlers behind it.

Routes are registered during setup and frozen when the router starts
serving.
"""
