"""
Polling subscriptions.
"""

from vigie.application.subscriptions.polling_engine import (
    PollCursor,
    PollingEngine,
    Subscription,
    SubscriptionKind,
    SubscriptionState,
)
from vigie.application.subscriptions.scheduler import (
    AsyncioScheduler,
    ScheduledTask,
    Scheduler,
)

__all__ = [
    "PollingEngine",
    "PollCursor",
    "Subscription",
    "SubscriptionKind",
    "SubscriptionState",
    "Scheduler",
    "ScheduledTask",
    "AsyncioScheduler",
]
