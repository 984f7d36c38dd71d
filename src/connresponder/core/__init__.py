"""
=============================================================================
CORE RESPONDER COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                            LISTENER                                  │
    │  • Resolves a passive local address (IPv4 or IPv6)                  │
    │  • Binds and listens with a backlog of 2                            │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ accept-ready
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                       RESPONDER (multiplexer)                        │
    │  • One selector, one thread, one blocking point                     │
    │  • Dispatches accept and data events by registry index              │
    │  • Stops after the completion threshold                             │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ fills slots with
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                           CONNECTION                                 │
    │  • One accepted socket in slot 0 ("main") or slot 1 ("other")       │
    │  • recv / FIONREAD / readiness probe                                │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .listener import Listener, create_listener
from .connection import Connection, SlotState
from .multiplexer import Responder, ResponderState

__all__ = [
    "Listener",          # Owns the listening socket
    "create_listener",   # Resolve, bind, listen
    "Connection",        # One accepted connection slot
    "SlotState",
    "Responder",         # The event loop
    "ResponderState",
]
