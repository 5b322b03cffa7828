"""State layer.

Holds the live location table, the durable alert counter/sound flag and
the in-process broadcast that keeps every view's copy of the count fresh.
"""
