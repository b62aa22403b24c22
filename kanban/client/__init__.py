"""Client for the realtime push channel."""

from .subscription import ConnectionState, PushSubscriptionClient, ReconnectPolicy, Unsubscribe
from .transport import EventStreamTransport, HttpEventStreamTransport, iter_sse_data

__all__ = [
    "ConnectionState",
    "EventStreamTransport",
    "HttpEventStreamTransport",
    "PushSubscriptionClient",
    "ReconnectPolicy",
    "Unsubscribe",
    "iter_sse_data",
]
