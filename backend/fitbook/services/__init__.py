"""
Service layer for the fitbook booking engine.

Import services from their modules; this package does not re-export them.
"""
