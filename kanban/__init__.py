"""Kanban push notifications service.

The package groups the domain entities, persistence layer, realtime channel
registry, HTTP interface and the reconnecting subscription client.
"""
