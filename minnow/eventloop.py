"""Waits for events on file descriptors and runs the matching callbacks."""

from __future__ import annotations

import enum
import errno
import os
import select
import socket
import sys
import weakref
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from .errors import UnixError
from .file_descriptor import FileDescriptor

Callback = Callable[[], None]
Interest = Callable[[], bool]

MAX_CATEGORIES = 64
_BUSY_WAIT_LIMIT = 128


def _always() -> bool:
    return True


class Direction(enum.Enum):
    """Whether a rule waits for its descriptor to become readable or writable."""

    IN = "in"
    OUT = "out"


class Result(enum.Enum):
    """The outcome of one call to ``EventLoop.wait_next_event``."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    EXIT = "exit"


@dataclass(eq=False)
class _BasicRule:
    category_id: int
    interest: Interest
    callback: Callback
    cancel_requested: bool = False


@dataclass(eq=False)
class _FDRule(_BasicRule):
    fd: FileDescriptor = field(default=None)  # type: ignore[assignment]
    direction: Direction = Direction.IN
    on_cancel: Optional[Callback] = None
    on_error: Optional[Callback] = None

    def service_count(self) -> int:
        """How often the descriptor has been read or written, as the direction requires."""
        return self.fd.read_count() if self.direction is Direction.IN else self.fd.write_count()

    def poll_mask(self) -> int:
        return select.POLLIN if self.direction is Direction.IN else select.POLLOUT

    def notify_cancel(self) -> None:
        if self.on_cancel is not None:
            self.on_cancel()

    def notify_error(self) -> None:
        if self.on_error is not None:
            self.on_error()


class RuleHandle:
    """A weak handle on a rule, used to cancel it."""

    def __init__(self, rule: _BasicRule) -> None:
        self._rule = weakref.ref(rule)

    def cancel(self) -> None:
        """Ask the loop to drop the rule; its cancel callback is not called."""
        rule = self._rule()
        if rule is not None:
            rule.cancel_requested = True


class EventLoop:
    """Runs callbacks for rules that are interested and, for descriptor rules, ready."""

    def __init__(self) -> None:
        self._categories: list[str] = []
        self._fd_rules: list[_FDRule] = []
        self._non_fd_rules: list[_BasicRule] = []

    def add_category(self, name: str) -> int:
        """Register a rule category for error messages; return its id."""
        if len(self._categories) >= MAX_CATEGORIES:
            raise RuntimeError("maximum categories reached")
        self._categories.append(name)
        return len(self._categories) - 1

    def _category_id(self, category: Union[int, str]) -> int:
        if isinstance(category, str):
            return self.add_category(category)
        if not 0 <= category < len(self._categories):
            raise IndexError("bad category_id")
        return category

    def add_rule(
        self,
        category: Union[int, str],
        callback: Callback,
        interest: Optional[Interest] = None,
    ) -> RuleHandle:
        """Add a rule that runs ``callback`` while ``interest`` holds.

        ``category`` is a category id, or a name for a new category.
        """
        rule = _BasicRule(self._category_id(category), interest or _always, callback)
        self._non_fd_rules.append(rule)
        return RuleHandle(rule)

    def add_fd_rule(
        self,
        category: Union[int, str],
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Optional[Interest] = None,
        cancel: Optional[Callback] = None,
        error: Optional[Callback] = None,
    ) -> RuleHandle:
        """Add a rule that runs ``callback`` when ``fd`` is ready in ``direction``.

        ``cancel`` runs when the rule ends by itself (EOF, hangup, closure);
        ``error`` runs first when the descriptor reports an error.
        """
        rule = _FDRule(
            self._category_id(category),
            interest or _always,
            callback,
            fd=fd.duplicate(),
            direction=direction,
            on_cancel=cancel,
            on_error=error,
        )
        self._fd_rules.append(rule)
        return RuleHandle(rule)

    def _name(self, rule: _BasicRule) -> str:
        return self._categories[rule.category_id]

    def _run_non_fd_rules(self) -> bool:
        for rule in list(self._non_fd_rules):
            if rule.cancel_requested:
                self._non_fd_rules.remove(rule)
                continue
            iterations = 0
            while rule.interest():
                if iterations >= _BUSY_WAIT_LIMIT:
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        f"is still interested after {iterations + 1} iterations"
                    )
                iterations += 1
                rule.callback()
            if iterations:
                return True
        return False

    def _report_poll_error(self, rule: _FDRule) -> None:
        try:
            sock = socket.socket(fileno=rule.fd.fd_num())
        except OSError as exc:
            if exc.errno == errno.ENOTSOCK:
                sys.stderr.write(f'error on polled file descriptor for rule "{self._name(rule)}"\n')
                return
            raise UnixError("getsockopt", exc.errno or 0) from exc
        try:
            socket_error = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        except OSError as exc:
            raise UnixError("getsockopt", exc.errno or 0) from exc
        finally:
            sock.detach()
        if socket_error:
            sys.stderr.write(
                f'error on polled socket for rule "{self._name(rule)}": {os.strerror(socket_error)}\n'
            )

    def wait_next_event(self, timeout_ms: int) -> Result:
        """Serve at most one rule, waiting up to ``timeout_ms`` (negative: forever)."""
        if self._run_non_fd_rules():
            return Result.SUCCESS

        polled: list[tuple[_FDRule, int]] = []
        for rule in list(self._fd_rules):
            if rule.cancel_requested:
                self._fd_rules.remove(rule)
                continue
            if (rule.direction is Direction.IN and rule.fd.eof()) or rule.fd.closed():
                rule.notify_cancel()
                self._fd_rules.remove(rule)
                continue
            polled.append((rule, rule.poll_mask() if rule.interest() else 0))

        if not any(events for _rule, events in polled):
            return Result.EXIT

        masks: dict[int, int] = {}
        for rule, events in polled:
            masks[rule.fd.fd_num()] = masks.get(rule.fd.fd_num(), 0) | events
        poller = select.poll()
        for fd_num, events in masks.items():
            poller.register(fd_num, events)
        try:
            ready = dict(poller.poll(None if timeout_ms < 0 else timeout_ms))
        except OSError as exc:
            raise UnixError("poll", exc.errno or 0) from exc
        if not ready:
            return Result.TIMEOUT

        for rule, events in polled:
            revents = ready.get(rule.fd.fd_num(), 0)

            if revents & (select.POLLERR | select.POLLNVAL):
                self._report_poll_error(rule)
                rule.notify_error()
                rule.notify_cancel()
                self._fd_rules.remove(rule)
                continue

            poll_ready = bool(revents & events)
            poll_hup = bool(revents & select.POLLHUP)
            if poll_hup and ((events and not poll_ready) or rule.direction is Direction.OUT):
                rule.notify_cancel()
                self._fd_rules.remove(rule)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if (
                    count_before == rule.service_count()
                    and not rule.fd.closed()
                    and rule.interest()
                ):
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        "did not read/write fd and is still interested"
                    )
                return Result.SUCCESS

        return Result.SUCCESS