"""State/store layer.

This package owns everything that must only be touched from the hub's
single execution thread: the slot registry, the per-slot label store and
the notification bus. Producer threads reach it exclusively through the
dispatch queue.
"""
