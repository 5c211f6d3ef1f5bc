import asyncio
import contextlib
import logging


class BackgroundTaskMixin:
    background_tasks: set[asyncio.Task]
    logger: logging.Logger

    def create_task(self, coroutine, tag=None) -> asyncio.Task:
        task = asyncio.get_event_loop().create_task(coroutine)
        if tag:
            setattr(task, '_task_tag', tag)
        self.register_task(task)
        return task

    def register_task(self, task: asyncio.Task) -> None:
        if not hasattr(self, 'background_tasks'):
            self.background_tasks = set()
        assert task is not None

        def print_exception(task: asyncio.Task):
            try:
                exc = task.exception()
            except asyncio.CancelledError:
                return
            if exc:
                self.logger.error(f'task exception: {exc}')

        self.background_tasks.add(task)
        task.add_done_callback(print_exception)
        task.add_done_callback(self.background_tasks.discard)

    def cancel_pending_tasks(self) -> None:
        if not hasattr(self, 'background_tasks'):
            return
        for task in list(self.background_tasks):
            task.cancel()
            self.background_tasks.discard(task)

    def cancel_tasks_by_tag(self, tag: str) -> None:
        if not hasattr(self, 'background_tasks'):
            return
        for task in list(self.background_tasks):
            if getattr(task, '_task_tag', None) == tag:
                task.cancel()
                self.background_tasks.discard(task)

    async def cancel_and_await_tasks_by_tag(self, tag: str) -> None:
        if not hasattr(self, 'background_tasks'):
            return
        for task in list(self.background_tasks):
            if getattr(task, '_task_tag', None) == tag:
                if not task.done():
                    task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
                self.background_tasks.discard(task)

    def tasks_by_tag(self, tag: str) -> list[asyncio.Task]:
        if not hasattr(self, 'background_tasks'):
            return []
        return [task for task in self.background_tasks if getattr(task, '_task_tag', None) == tag]


class RequestError(Exception):
    """Base error for camera request failures."""
    pass


class TransientNetworkError(RequestError):
    """Camera unreachable, timed out, or answered with a server error."""
    pass


class AuthenticationError(RequestError):
    """Camera rejected the credentials or the session token."""

    def __init__(self, message: str, error_code: int | None = None):
        super().__init__(message)
        self.error_code = error_code


class InvalidResponseError(RequestError):
    """Response could not be parsed or was invalid for expected schema."""
    pass


class DeviceError(InvalidResponseError):
    """Camera answered with a non-zero error code that is not an auth fault."""

    def __init__(self, message: str, error_code: int):
        super().__init__(message)
        self.error_code = error_code
