"""
app/parsers/csv_stream.py

Bounded-memory CSV parsing for product uploads.

The source is read incrementally and tokenized into RawRecords (column name ->
trimmed string). ``parse_stream`` runs the tokenizer as a producer task feeding
an ``asyncio.Queue`` whose capacity equals the batch size; the calling
coroutine consumes the queue and awaits the batch handler one batch at a time.
While a batch is in flight the producer stops reading the source as soon as
the queue is full.
"""

from __future__ import annotations

import asyncio
import codecs
import csv
import inspect
import logging
import re
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator, Sequence
from typing import Any

from app.domain.product import RawRecord

logger = logging.getLogger(__name__)

DEFAULT_READ_SIZE = 64 * 1024

_LINE_END = re.compile(r"\r\n|\n|\r")
_BOM = "\ufeff"

BatchHandler = Callable[[list[RawRecord]], Awaitable[None]]


class CSVParseError(ValueError):
    """
    Raised when the CSV framing is malformed.
    """

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number


class _LineFeed:
    """
    Iterator over physical lines handed to csv.reader one record at a time.
    """

    def __init__(self) -> None:
        self._lines: deque[str] = deque()

    def push(self, lines: Sequence[str]) -> None:
        self._lines.extend(lines)

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        if not self._lines:
            raise StopIteration
        return self._lines.popleft()


class CSVRecordTokenizer:
    """
    Incremental tokenizer: feed text chunks, get complete RawRecords back.

    The first non-blank record is the header. Blank lines are skipped and do
    not produce records. Field values and header names are trimmed.
    """

    def __init__(self) -> None:
        self._feed = _LineFeed()
        self._reader = csv.reader(self._feed, strict=True, skipinitialspace=True)
        self._pending = ""
        self._record_lines: list[str] = []
        self._record_start_line = 0
        self._in_quotes = False
        self._line_number = 0
        self._started = False
        self._header: list[str] | None = None

    @property
    def header(self) -> list[str] | None:
        return self._header

    def feed(self, text: str) -> Iterator[RawRecord]:
        """
        Yield each record completed by ``text``, as soon as it is complete.

        Records preceding a malformed line are yielded before CSVParseError
        is raised. The generator must be exhausted before the next call.
        """

        if not self._started:
            self._started = True
            if text.startswith(_BOM):
                text = text[1:]

        data = self._pending + text
        position = 0
        try:
            for match in _LINE_END.finditer(data):
                end = match.end()
                # A trailing "\r" may be the first half of "\r\n" split across chunks.
                if match.group() == "\r" and end == len(data):
                    break
                line, position = data[position:end], end
                record = self._consume_line(line)
                if record is not None:
                    yield record
        finally:
            self._pending = data[position:]

    def close(self) -> Iterator[RawRecord]:
        """
        Flush the last unterminated line and check that no quoted field is open.
        """

        if self._pending:
            line, self._pending = self._pending, ""
            record = self._consume_line(line)
            if record is not None:
                yield record

        if self._in_quotes:
            raise CSVParseError(
                "Unexpected end of data inside a quoted field.",
                line_number=self._record_start_line,
            )

    def _consume_line(self, line: str) -> RawRecord | None:
        self._line_number += 1
        if not self._record_lines:
            self._record_start_line = self._line_number
        self._record_lines.append(self._scan_quotes(line))
        if self._in_quotes:
            return None

        lines, self._record_lines = self._record_lines, []
        self._feed.push(lines)
        try:
            fields = next(self._reader)
        except csv.Error as exc:
            raise CSVParseError(
                f"Invalid CSV format: {exc}",
                line_number=self._record_start_line,
            ) from exc
        except StopIteration:
            return None

        if all(field.strip() == "" for field in fields) and len(fields) <= 1:
            return None
        return self._to_record(fields)

    def _scan_quotes(self, line: str) -> str:
        """
        Track quote state across ``line`` and return it with padding between
        a closing quote and the next delimiter removed.
        """

        if not self._in_quotes and '"' not in line:
            return line

        in_quotes = self._in_quotes
        field_start = not in_quotes
        pieces: list[str] = []
        kept_from = 0
        index = 0
        length = len(line)
        while index < length:
            if in_quotes:
                quote = line.find('"', index)
                if quote == -1:
                    break
                if quote + 1 < length and line[quote + 1] == '"':
                    index = quote + 2
                    continue
                in_quotes = False
                index = quote + 1
                padding_end = index
                while padding_end < length and line[padding_end] in " \t":
                    padding_end += 1
                if padding_end > index and (padding_end == length or line[padding_end] in ",\r\n"):
                    pieces.append(line[kept_from:index])
                    kept_from = padding_end
                index = padding_end
                continue

            char = line[index]
            if char == ",":
                field_start = True
            elif char == '"':
                if not field_start:
                    raise CSVParseError(
                        "Invalid quote inside an unquoted field.",
                        line_number=self._line_number,
                    )
                in_quotes = True
                field_start = False
            elif char not in " \t\r\n":
                field_start = False
            index += 1

        self._in_quotes = in_quotes
        pieces.append(line[kept_from:])
        return "".join(pieces)

    def _to_record(self, fields: list[str]) -> RawRecord | None:
        values = [field.strip() for field in fields]
        if self._header is None:
            self._header = self._build_header(values)
            return None

        if len(values) != len(self._header):
            raise CSVParseError(
                f"Invalid record length: header has {len(self._header)} columns, "
                f"got {len(values)}.",
                line_number=self._record_start_line,
            )
        return dict(zip(self._header, values))

    def _build_header(self, names: list[str]) -> list[str]:
        seen: set[str] = set()
        for name in names:
            if name in seen:
                raise CSVParseError(
                    f"Duplicate column name in header: {name!r}.",
                    line_number=self._record_start_line,
                )
            seen.add(name)
        return names


async def iter_text_chunks(source: Any, *, read_size: int = DEFAULT_READ_SIZE) -> AsyncIterator[str]:
    """
    Yield text chunks from a string, bytes, file-like or (async) iterable source.

    Bytes are decoded incrementally as UTF-8; a leading BOM is dropped.
    """

    decoder = codecs.getincrementaldecoder("utf-8-sig")()

    def decode(chunk: str | bytes, *, final: bool = False) -> str:
        if isinstance(chunk, str):
            return chunk
        try:
            return decoder.decode(chunk, final=final)
        except UnicodeDecodeError as exc:
            raise CSVParseError("CSV must be UTF-8 encoded.") from exc

    if isinstance(source, (str, bytes, bytearray)):
        yield decode(bytes(source) if isinstance(source, bytearray) else source, final=True)
        return

    if hasattr(source, "read"):
        while True:
            chunk = source.read(read_size)
            if inspect.isawaitable(chunk):
                chunk = await chunk
            if not chunk:
                break
            text = decode(chunk)
            if text:
                yield text
    elif hasattr(source, "__aiter__"):
        async for chunk in source:
            text = decode(chunk)
            if text:
                yield text
    else:
        for chunk in source:
            text = decode(chunk)
            if text:
                yield text

    tail = decode(b"", final=True)
    if tail:
        yield tail


async def iter_records(source: Any, *, read_size: int = DEFAULT_READ_SIZE) -> AsyncIterator[RawRecord]:
    """
    Yield RawRecords from ``source`` in input order.

    Raises CSVParseError when the CSV framing is malformed.
    """

    tokenizer = CSVRecordTokenizer()
    async for text in iter_text_chunks(source, read_size=read_size):
        for record in tokenizer.feed(text):
            yield record
    for record in tokenizer.close():
        yield record


class _ProducerFailure:
    def __init__(self, error: BaseException) -> None:
        self.error = error


_END_OF_STREAM = object()


async def _produce(source: Any, queue: asyncio.Queue, read_size: int) -> None:
    try:
        async for record in iter_records(source, read_size=read_size):
            await queue.put(record)
    except Exception as exc:
        # Handed to the consumer so it fails after every earlier record.
        await queue.put(_ProducerFailure(exc))
        return
    await queue.put(_END_OF_STREAM)


async def parse_stream(
    source: Any,
    on_batch: BatchHandler,
    batch_size: int = 1000,
    *,
    read_size: int = DEFAULT_READ_SIZE,
) -> None:
    """
    Parse ``source`` and hand RawRecords to ``on_batch`` in batches of ``batch_size``.

    ``on_batch`` is awaited strictly sequentially, so row order is preserved
    across batches. The trailing partial batch is flushed once the source is
    exhausted and only when it holds at least one record, giving exactly
    ceil(N / batch_size) handler calls for N records.

    Raises CSVParseError for malformed CSV; errors from ``on_batch`` propagate
    unchanged after the producer has been stopped.
    """

    if batch_size < 1:
        raise ValueError("batch_size must be a positive integer.")

    queue: asyncio.Queue = asyncio.Queue(maxsize=batch_size)
    producer = asyncio.create_task(_produce(source, queue, read_size))
    batch: list[RawRecord] = []
    batches = 0
    try:
        while True:
            item = await queue.get()
            if item is _END_OF_STREAM:
                break
            if isinstance(item, _ProducerFailure):
                raise item.error

            batch.append(item)
            if len(batch) == batch_size:
                current, batch = batch, []
                batches += 1
                await on_batch(current)

        if batch:
            batches += 1
            await on_batch(batch)
        logger.debug("CSV stream parsed batches=%d batch_size=%d", batches, batch_size)
    finally:
        if not producer.done():
            producer.cancel()
        await asyncio.wait([producer])


def parse_csv_text(content: str | bytes) -> list[RawRecord]:
    """
    Materialize a small CSV document into RawRecords.

    Intended for tests and small inputs; uploads go through ``parse_stream``.
    """

    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CSVParseError("CSV must be UTF-8 encoded.") from exc

    tokenizer = CSVRecordTokenizer()
    records = list(tokenizer.feed(content))
    records.extend(tokenizer.close())
    return records
