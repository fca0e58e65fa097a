"""Progress events and the helpers that build the common ones."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import IntEnum

from composekit.spinner import Spinner


class EventStatus(IntEnum):
    """State of the task an event reports on."""

    WORKING = 0
    DONE = 1
    ERROR = 2


@dataclass
class Event:
    """A progress event for one task."""

    id: str
    status: EventStatus = EventStatus.WORKING
    status_text: str = ""
    text: str = ""
    parent_id: str = ""
    start_time: float | None = None
    end_time: float | None = None
    spinner: Spinner | None = None

    def stop(self) -> None:
        """Record the end time and freeze the spinner."""
        self.end_time = time.monotonic()
        if self.spinner is not None:
            self.spinner.stop()


def new_event(id: str, status: EventStatus, status_text: str) -> Event:
    """Create an event with the given status and status text."""
    return Event(id=id, status=status, status_text=status_text)


def error_message_event(id: str, msg: str) -> Event:
    """Create an error event carrying ``msg``."""
    return new_event(id, EventStatus.ERROR, msg)


def error_event(id: str) -> Event:
    return new_event(id, EventStatus.ERROR, "Error")


def creating_event(id: str) -> Event:
    return new_event(id, EventStatus.WORKING, "Creating")


def starting_event(id: str) -> Event:
    return new_event(id, EventStatus.WORKING, "Starting")


def started_event(id: str) -> Event:
    return new_event(id, EventStatus.DONE, "Started")


def waiting(id: str) -> Event:
    return new_event(id, EventStatus.WORKING, "Waiting")


def healthy(id: str) -> Event:
    return new_event(id, EventStatus.DONE, "Healthy")


def exited(id: str) -> Event:
    return new_event(id, EventStatus.DONE, "Exited")


def restarting_event(id: str) -> Event:
    return new_event(id, EventStatus.WORKING, "Restarting")


def restarted_event(id: str) -> Event:
    return new_event(id, EventStatus.DONE, "Restarted")


def running_event(id: str) -> Event:
    return new_event(id, EventStatus.DONE, "Running")


def created_event(id: str) -> Event:
    return new_event(id, EventStatus.DONE, "Created")


def stopping_event(id: str) -> Event:
    return new_event(id, EventStatus.WORKING, "Stopping")


def stopped_event(id: str) -> Event:
    return new_event(id, EventStatus.DONE, "Stopped")


def killing_event(id: str) -> Event:
    return new_event(id, EventStatus.WORKING, "Killing")


def killed_event(id: str) -> Event:
    return new_event(id, EventStatus.DONE, "Killed")


def removing_event(id: str) -> Event:
    return new_event(id, EventStatus.WORKING, "Removing")


def removed_event(id: str) -> Event:
    return new_event(id, EventStatus.DONE, "Removed")