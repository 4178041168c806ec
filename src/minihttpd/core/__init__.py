"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing underneath the HTTP layer:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                               │
    │  • Binds the listening socket, runs the accept() loop              │
    │  • Stops on shutdown(), SIGINT or SIGTERM                           │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ one task per accepted connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          THREAD POOL                                │
    │  • Fixed number of workers sharing one bounded queue                │
    │  • A failing task never takes its worker down                       │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ worker runs the connection handler
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                 │
    │  • Reads one complete request (headers + declared body)            │
    │  • Sends one response, then closes                                  │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .connection import Connection, ConnectionState, RequestTooLargeError
from .socket_server import SocketServer
from .thread_pool import Task, ThreadPool, Worker, WorkerState

__all__ = [
    "Connection",
    "ConnectionState",
    "RequestTooLargeError",
    "SocketServer",
    "Task",
    "ThreadPool",
    "Worker",
    "WorkerState",
]
