"""A file logger that batches messages per log type and flushes them on count, time or idleness."""

from __future__ import annotations

import dataclasses
import io
import itertools
import logging
import os
import queue
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TextIO

from toolbelt.codec import JSONEncoderFactory

_log = logging.getLogger(__name__)

_STOP = object()


class _StreamClosedError(RuntimeError):
    """Raised when a message is sent to a stream that has already been closed."""


def _pad(value: int, width: int) -> str:
    return str(value).zfill(width)


def _format_run(moment: datetime, letter: str, width: int) -> str:
    if letter == "y":
        if width == 2:
            return _pad(moment.year % 100, 2)
        return _pad(moment.year, max(width, 4))
    if letter == "M":
        if width >= 4:
            return moment.strftime("%B")
        if width == 3:
            return moment.strftime("%b")
        return _pad(moment.month, width)
    if letter == "d":
        return _pad(moment.day, width)
    if letter == "H":
        return _pad(moment.hour, width)
    if letter == "h":
        return _pad(moment.hour % 12 or 12, width)
    if letter == "m":
        return _pad(moment.minute, width)
    if letter == "s":
        return _pad(moment.second, width)
    if letter == "S":
        return _pad(moment.microsecond // 1000, width)
    if letter == "a":
        return "PM" if moment.hour >= 12 else "AM"
    if letter == "E":
        return moment.strftime("%A" if width >= 4 else "%a")
    if letter == "z":
        return moment.tzname() or ""
    if letter == "Z":
        return moment.strftime("%z")
    return letter * width


def _format_date(moment: datetime, pattern: str) -> str:
    """Format moment with a date pattern such as yyyy-MM-dd HH:mm:ss."""
    parts = []
    for char, run in itertools.groupby(pattern):
        width = len(list(run))
        if char.isalpha():
            parts.append(_format_run(moment, char, width))
        else:
            parts.append(char * width)
    return "".join(parts)


@dataclass
class LogMessage:
    """A message addressed to the log configured for message_type."""

    message_type: str
    message: Any


@dataclass
class FileLoggerConfig:
    """Settings of one log type: target file template, batching and idleness limits.

    A file template may hold one date pattern in brackets, e.g. /tmp/app[yyyyMMdd].log.
    """

    log_type: str = ""
    file_template: str = ""
    queue_flush_count: int = 0
    max_queue_size: int = 0
    flush_requency_in_ms: int = 0
    flush_frequency_in_ms: int = 0
    max_idle_time_in_sec: int = 0
    _filename_provider: Callable[[datetime], str] | None = field(
        default=None, init=False, repr=False, compare=False
    )

    def init(self) -> None:
        """Prepare the file name provider from the file template."""
        if self._filename_provider is not None:
            return
        template = self.file_template
        self._filename_provider = lambda moment: template
        start = template.find("[")
        if start == -1:
            return
        end = template.find("]")
        if end == -1:
            return
        pattern = template[start + 1 : end]
        placeholder = "[" + pattern + "]"
        self._filename_provider = lambda moment: template.replace(
            placeholder, _format_date(moment, pattern), 1
        )

    def validate(self) -> None:
        """Raise ValueError if a required setting is missing."""
        if not self.log_type:
            raise ValueError("Log type was empty")
        if self.flush_frequency_in_ms == 0:
            self.flush_frequency_in_ms = self.flush_requency_in_ms
        if self.flush_frequency_in_ms == 0:
            raise ValueError("FlushFrequencyInMs was 0")
        if self.max_queue_size == 0:
            raise ValueError("MaxQueueSize was 0")
        if not self.file_template:
            raise ValueError("FileTemplate was empty")
        if self.max_idle_time_in_sec == 0:
            raise ValueError("MaxIdleTimeInSec was 0")
        if self.queue_flush_count == 0:
            raise ValueError("QueueFlushCount was 0")

    def filename_for(self, moment: datetime) -> str:
        """Return the log file name for the given time."""
        self.init()
        assert self._filename_provider is not None
        return self._filename_provider(moment)


def _as_text(message: Any) -> str:
    if isinstance(message, str):
        return message
    if (
        isinstance(message, (Mapping, list, tuple))
        or dataclasses.is_dataclass(message)
        and not isinstance(message, type)
    ):
        buffer = io.BytesIO()
        JSONEncoderFactory().create(buffer).encode(message)
        return buffer.getvalue().decode("utf-8").strip("\n\r")
    raise TypeError(f"unsupported type: {type(message).__name__}")


class LogStream:
    """Queues messages for one file and writes them in batches from a worker thread."""

    def __init__(
        self, name: str, logger: "FileLogger", config: FileLoggerConfig, file: TextIO
    ) -> None:
        self.name = name
        self.logger = logger
        self.config = config
        self.file = file
        self.record_count = 0
        self.last_add_queue_time: datetime | None = None
        self.last_write_time = 0
        self._queue: queue.Queue = queue.Queue(maxsize=max(config.max_queue_size, 0))
        self._lock = threading.Lock()
        self._closed = False
        self._worker = threading.Thread(
            target=self._run, name=f"log-stream:{name}", daemon=True
        )

    def _start(self) -> None:
        self._worker.start()

    @property
    def closed(self) -> bool:
        """True once the stream has stopped accepting messages."""
        return self._closed

    def log(self, message: LogMessage | None) -> None:
        """Queue a message; text is written as is, maps, lists and dataclasses as JSON."""
        if message is None:
            raise ValueError("message was nil")
        text = _as_text(message.message)
        with self._lock:
            if self._closed:
                raise _StreamClosedError(f"log stream {self.name} was closed")
        self._queue.put(text)
        self.last_add_queue_time = datetime.now()

    def _write(self, lines: list[str]) -> None:
        self.last_write_time = time.time_ns()
        self.file.write("".join(line + "\n" for line in lines))
        self.file.flush()
        os.fsync(self.file.fileno())

    def _elapsed_ms(self) -> int:
        return (time.time_ns() - self.last_write_time) // 1_000_000

    def _flush_needed(self) -> bool:
        return self._elapsed_ms() >= self.config.flush_frequency_in_ms

    def _safe_write(self, lines: list[str]) -> None:
        try:
            self._write(lines)
        except OSError as exc:
            _log.warning("failed to write to log due to %s", exc)

    def _run(self) -> None:
        pending: list[str] = []
        timeout = 2 * self.config.flush_frequency_in_ms / 1000
        limit = self.config.queue_flush_count
        while True:
            try:
                item = self._queue.get(timeout=timeout)
            except queue.Empty:
                if pending and self._flush_needed():
                    self._safe_write(pending)
                    pending = []
                    continue
                if self._elapsed_ms() > self.config.max_idle_time_in_sec * 1000:
                    if pending:
                        self._safe_write(pending)
                    self._finish()
                    return
                continue
            if item is _STOP:
                if pending:
                    self._safe_write(pending)
                self._finish()
                return
            pending.append(item)
            self.record_count += 1
            if (limit > 0 and len(pending) >= limit) or self._flush_needed():
                self._safe_write(pending)
                pending = []

    def _finish(self) -> None:
        with self._lock:
            self._closed = True
        leftover = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is not _STOP:
                leftover.append(item)
        if leftover:
            self._safe_write(leftover)
        self.logger._forget(self)
        self.file.close()

    def close(self) -> None:
        """Write pending messages, close the file and detach from the logger."""
        with self._lock:
            if self._closed:
                return
        self._queue.put(_STOP)
        if threading.current_thread() is not self._worker and self._worker.is_alive():
            self._worker.join()


class FileLogger:
    """Routes log messages to per-type files named from their configured templates."""

    def __init__(self, configs: Mapping[str, FileLoggerConfig] | None = None) -> None:
        self._configs: dict[str, FileLoggerConfig] = dict(configs or {})
        self._streams: dict[str, LogStream] = {}
        self._lock = threading.RLock()

    def _config(self, message_type: str) -> FileLoggerConfig:
        try:
            config = self._configs[message_type]
        except KeyError:
            raise LookupError(f"failed to lookup config for {message_type}") from None
        config.init()
        return config

    def _forget(self, stream: LogStream) -> None:
        with self._lock:
            if self._streams.get(stream.name) is stream:
                del self._streams[stream.name]

    def new_log_stream(self, path: str, config: FileLoggerConfig) -> LogStream:
        """Open path for appending and start a stream writing to it."""
        file = open(path, "a", encoding="utf-8")
        stream = LogStream(path, self, config, file)
        stream._start()
        return stream

    def _acquire(self, message_type: str) -> LogStream:
        config = self._config(message_type)
        filename = config.filename_for(datetime.now())
        with self._lock:
            stream = self._streams.get(filename)
            if stream is not None and not stream.closed:
                return stream
            stream = self.new_log_stream(filename, config)
            self._streams[filename] = stream
            return stream

    def log(self, message: LogMessage) -> None:
        """Queue message on the stream for its type, opening the stream if needed."""
        while True:
            stream = self._acquire(message.message_type)
            try:
                stream.log(message)
                return
            except _StreamClosedError:
                continue

    def close(self) -> None:
        """Flush and close every open stream."""
        with self._lock:
            streams = list(self._streams.values())
        for stream in streams:
            stream.close()

    def notify(self) -> None:
        """Handle a termination request: write everything pending now and close all streams."""
        with self._lock:
            streams = list(self._streams.values())
        for stream in streams:
            stream.config.flush_frequency_in_ms = 0
        self.close()

    def __enter__(self) -> "FileLogger":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def new_file_logger(*args: FileLoggerConfig) -> FileLogger:
    """Validate the configs and return a logger for them, keyed by log type."""
    configs: dict[str, FileLoggerConfig] = {}
    for config in args:
        config.validate()
        configs[config.log_type] = config
    return FileLogger(configs)