"""
Source connector glue around table discovery

Components:
- config: settings parsing and validation
- context: host callback contract
- source: connector lifecycle and task config generation
- cli: command-line interface

Usage:
    from connector.source import TableSourceConnector
"""

__version__ = "1.0.0"
__all__ = ["config", "context", "source", "cli"]
