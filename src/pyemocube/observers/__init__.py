"""Hub observers.

Observers subscribe to a :class:`pyemocube.hub.CoordinationHub` and react to
its events on the execution thread. They never hold hub state themselves.
"""

from pyemocube.observers.chat import ChatObserver
from pyemocube.observers.console import ConsoleObserver

__all__ = ["ChatObserver", "ConsoleObserver"]
