"""Event bus infrastructure settings."""

from typing import Optional

from pydantic import Field

from evbus.configuration.base import InfrastructureSettings


class EventBusSettings(InfrastructureSettings):
    """Event bus configuration.

    Environment Variables:
        EVENT_BUS_WORKER_COUNT: Worker threads for asynchronous dispatch
            (default: host CPU count)
        EVENT_BUS_THREAD_NAME_PREFIX: Name prefix for worker threads
        EVENT_BUS_SHUTDOWN_WAIT: Wait for queued dispatches at interpreter
            exit (default: False)

    Example:
        ```python
        from evbus.configuration import settings

        workers = settings.events.worker_count or os.cpu_count()
        ```
    """

    worker_count: Optional[int] = Field(
        default=None,
        alias="EVENT_BUS_WORKER_COUNT",
        gt=0,
        description="Worker threads for async dispatch; defaults to CPU count",
    )
    thread_name_prefix: str = Field(
        default="evbus-worker",
        alias="EVENT_BUS_THREAD_NAME_PREFIX",
        description="Thread name prefix for pool workers",
    )
    shutdown_wait: bool = Field(
        default=False,
        alias="EVENT_BUS_SHUTDOWN_WAIT",
        description="Wait for pending dispatches when shutting down at exit",
    )
