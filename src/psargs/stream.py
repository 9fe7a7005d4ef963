"""Bounded producer/consumer handoff between the lexer and the parser."""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from psargs.tokens import Token, TokenType

DEFAULT_BUFFER_SIZE = 64

# How long a blocked producer waits before re-checking for cancellation
_POLL_INTERVAL = 0.05


@dataclass(frozen=True, slots=True)
class _Abort:
    """Queue item carrying the producer's failure to the consumer."""

    error: BaseException


class TokenStream:
    """Single-pass token iterator fed by a producer thread.

    The producer blocks while the queue is full and the consumer blocks
    while it is empty. A producer failure is delivered to the consumer as
    the original exception once every token produced before it has been
    consumed.
    """

    def __init__(self, producer: Iterable[Token], *, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")
        self._producer = producer
        self._queue: queue.Queue[Token | _Abort] = queue.Queue(maxsize=buffer_size)
        self._cancelled = threading.Event()
        self._consumed = False
        self._thread = threading.Thread(target=self._produce, name="psargs-lexer", daemon=True)
        self._thread.start()

    def __iter__(self) -> Iterator[Token]:
        if self._consumed:
            raise RuntimeError("token stream can only be consumed once")
        self._consumed = True
        return self._consume()

    def __enter__(self) -> TokenStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Cancel the producer and wait for it to finish."""
        self._cancelled.set()
        self._thread.join()

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def _produce(self) -> None:
        try:
            for token in self._producer:
                if not self._put(token):
                    return
                if token.type == TokenType.EOF:
                    return
        except Exception as exc:  # delivered to the consumer
            self._put(_Abort(exc))
            return
        self._put(_Abort(RuntimeError("token producer ended without EOF")))

    def _put(self, item: Token | _Abort) -> bool:
        while not self._cancelled.is_set():
            try:
                self._queue.put(item, timeout=_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def _consume(self) -> Iterator[Token]:
        try:
            while True:
                item = self._queue.get()
                if isinstance(item, _Abort):
                    raise item.error
                yield item
                if item.type == TokenType.EOF:
                    return
        finally:
            self.close()
