"""Skill Factory: registry, validation and security audit for MCP skills."""

__version__ = "2.1.0"
