"""Deploy Progress - live terminal rendering of cloud deployment events.

Subscribes to streams of stack resource events, service rolling-update
snapshots and stack-set operation events, and redraws a tree of progress
components in place until every tracked resource settles.
"""

__version__ = "0.4.0"
