"""
Module: storage
Description: Package initialization for the durable event queue.

- event_queue: EventQueue interface and its filesystem implementation
"""

__all__ = []
