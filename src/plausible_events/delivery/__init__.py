"""
Package: delivery
Description: Event delivery mechanisms.

Provides the HTTP transport, the retry policy and the delivery engine
that ties them to the durable queue.
"""
