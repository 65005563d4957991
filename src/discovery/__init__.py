"""
Table discovery for relational-source ingestion

Discovers the tables a pool of ingestion tasks should copy, keeps the set
fresh as the schema changes, and splits it across task slots.

Components:
- table_id: TableId identifiers and name rendering
- filters: whitelist / blacklist filtering
- dialect: per-database connection and table listing
- connection: cached connection provider
- monitor: background table monitor thread
- partition: task assignment

Usage:
    from discovery.monitor import TableMonitor
    from discovery.partition import assign_tables
"""

__version__ = "1.0.0"
__all__ = ["table_id", "filters", "dialect", "connection", "monitor", "partition", "errors"]
