"""Streaming decoder for the ``locations`` array of a location history export.

The export is one JSON document holding a single, potentially multi-gigabyte
array. ``json.load`` would materialize all of it, so the array elements are cut
out of the character stream one object at a time and decoded individually.
"""

from __future__ import annotations

import codecs
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Final, Iterable, Iterator, TextIO

from takeout_stats.models import LOCATIONS_KEY, Location, RecordDecodeError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE: Final[int] = 1 << 16

# Next character that can change the scanner state.
_OBJECT_STOP = re.compile(r'[{}"]')
_STRING_STOP = re.compile(r'["\\]')


class SourceNotFound(FileNotFoundError):
    """Raised when the input document does not exist or cannot be opened."""


class ScanState(Enum):
    """Scanner states, in the order a well-formed document walks through them."""

    SEEK_ANCHOR = auto()
    BETWEEN_ELEMENTS = auto()
    IN_OBJECT = auto()
    IN_STRING = auto()
    DONE = auto()


@dataclass(frozen=True, slots=True)
class DecodedElement:
    """Outcome of decoding one array element.

    Exactly one of ``record`` and ``error`` is set.
    """

    index: int
    raw: str
    record: Location | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.record is not None


class LocationStreamDecoder:
    """Incremental decoder for the elements of one named JSON array.

    Chunks may be split anywhere, including inside a key, a string escape or a
    multibyte UTF-8 sequence (for bytes input). Invalid UTF-8 becomes U+FFFD, so
    a bad byte only affects the element that contains it. Each ``feed``
    generator must be exhausted before the next chunk is fed.

    Example:
        decoder = LocationStreamDecoder("locations")
        for element in decoder.decode_chunks(chunks):
            ...
    """

    def __init__(self, key: str = LOCATIONS_KEY) -> None:
        self._quoted_key = json.dumps(key)
        self._anchor = re.compile(re.escape(self._quoted_key) + r"\s*:\s*\[")
        self._partial_anchor = re.compile(re.escape(self._quoted_key) + r"\s*(?::\s*)?")
        self._state = ScanState.SEEK_ANCHOR
        self._window = ""
        self._parts: list[str] = []
        self._depth = 0
        self._escape_next = False
        self._index = 0
        self._text_decoder: codecs.IncrementalDecoder | None = None

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def found_array(self) -> bool:
        """Whether the array's opening bracket has been located."""

        return self._state is not ScanState.SEEK_ANCHOR

    @property
    def done(self) -> bool:
        """Whether the array's closing bracket has been reached."""

        return self._state is ScanState.DONE

    def feed(self, chunk: str | bytes) -> Iterator[DecodedElement]:
        """Push one chunk and yield every element completed by it."""

        if isinstance(chunk, bytes):
            if self._text_decoder is None:
                self._text_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            text = self._text_decoder.decode(chunk)
        else:
            text = chunk
        if not text or self.done:
            return
        yield from self._scan(text)

    def finish(self) -> DecodedElement | None:
        """Signal end of input.

        Returns:
            A failure result if the input ended in the middle of an element, else None.
        """

        if self._text_decoder is not None:
            tail = self._text_decoder.decode(b"", final=True)
            if tail and self._state in (ScanState.IN_OBJECT, ScanState.IN_STRING):
                self._parts.append(tail)
        if self._state not in (ScanState.IN_OBJECT, ScanState.IN_STRING):
            return None
        raw = "".join(self._parts)
        self._parts.clear()
        self._state = ScanState.DONE
        index = self._index
        self._index += 1
        return DecodedElement(index=index, raw=raw, error=RecordDecodeError("输入在数组元素中途结束"))

    def decode_chunks(self, chunks: Iterable[str | bytes]) -> Iterator[DecodedElement]:
        """Decode a whole chunk sequence; stops pulling chunks once the array is closed."""

        for chunk in chunks:
            yield from self.feed(chunk)
            if self.done:
                return
        tail = self.finish()
        if tail is not None:
            yield tail

    def _scan(self, text: str) -> Iterator[DecodedElement]:
        pos = 0
        if self._state is ScanState.SEEK_ANCHOR:
            pos = self._seek_anchor(text)
            if pos < 0:
                return

        # start of the current element inside `text`, -1 when between elements
        start = 0 if self._state in (ScanState.IN_OBJECT, ScanState.IN_STRING) else -1
        n = len(text)
        i = pos
        while i < n:
            state = self._state
            if state is ScanState.IN_STRING:
                if self._escape_next:
                    self._escape_next = False
                else:
                    m = _STRING_STOP.search(text, i)
                    if m is None:
                        break
                    i = m.start()
                    if text[i] == "\\":
                        self._escape_next = True
                    else:
                        self._state = ScanState.IN_OBJECT
            elif state is ScanState.IN_OBJECT:
                m = _OBJECT_STOP.search(text, i)
                if m is None:
                    break
                i = m.start()
                ch = text[i]
                if ch == '"':
                    self._state = ScanState.IN_STRING
                elif ch == "{":
                    self._depth += 1
                else:
                    self._depth -= 1
                    if self._depth == 0:
                        self._parts.append(text[start : i + 1])
                        raw = "".join(self._parts)
                        self._parts.clear()
                        self._state = ScanState.BETWEEN_ELEMENTS
                        start = -1
                        yield self._decode(raw)
            elif state is ScanState.BETWEEN_ELEMENTS:
                ch = text[i]
                if ch == "{":
                    self._state = ScanState.IN_OBJECT
                    self._depth = 1
                    start = i
                elif ch == "]":
                    self._state = ScanState.DONE
                    return
                # whitespace, commas and stray scalars are skipped
            else:
                return
            i += 1

        if start >= 0:
            self._parts.append(text[start:])

    def _seek_anchor(self, text: str) -> int:
        """Return the offset in ``text`` just past the anchor, or -1 if not found yet."""

        buf = self._window + text
        m = self._anchor.search(buf)
        if m is None:
            self._window = self._trailing_window(buf)
            return -1
        self._window = ""
        self._state = ScanState.BETWEEN_ELEMENTS
        return m.end() - len(buf) + len(text)

    def _trailing_window(self, buf: str) -> str:
        # Keep a possible partial anchor: either the key followed by whitespace/colon,
        # or a tail short enough to be a prefix of the quoted key.
        k = buf.rfind(self._quoted_key)
        if k >= 0 and self._partial_anchor.fullmatch(buf, k) is not None:
            return buf[k:]
        keep = len(self._quoted_key) - 1
        return buf[-keep:]

    def _decode(self, raw: str) -> DecodedElement:
        index = self._index
        self._index += 1
        try:
            record = Location.from_json(json.loads(raw))
        except ValueError as exc:  # json.JSONDecodeError / RecordDecodeError
            return DecodedElement(index=index, raw=raw, error=exc)
        return DecodedElement(index=index, raw=raw, record=record)


def iter_text_chunks(f: TextIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[str]:
    """Yield fixed-size text chunks until EOF."""

    while chunk := f.read(chunk_size):
        yield chunk


def log_decode_error(element: DecodedElement) -> None:
    logger.warning("第 %s 个元素解析失败，已跳过：%s\n对象：\n%s", element.index, element.error, element.raw)


def read_locations(
    path: str | Path,
    *,
    key: str = LOCATIONS_KEY,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_error: Callable[[DecodedElement], None] | None = None,
) -> Iterator[Location]:
    """Yield Location records from the array under ``key`` without loading the file.

    Args:
        path: Path to the JSON export (e.g. Records.json).
        key: Name of the array to stream.
        chunk_size: Characters read per chunk.
        on_error: Called with each element that failed to decode. Defaults to
            logging a warning with the raw object text.

    Yields:
        Successfully decoded records, in document order.

    Raises:
        SourceNotFound: If the file does not exist or cannot be opened.
    """

    p = Path(path)
    try:
        f = p.open("r", encoding="utf-8", errors="replace")
    except OSError as exc:
        raise SourceNotFound(f"无法打开输入文件：{p}") from exc

    handle_error = on_error or log_decode_error
    decoder = LocationStreamDecoder(key)
    with f:
        for element in decoder.decode_chunks(iter_text_chunks(f, chunk_size)):
            if element.record is not None:
                yield element.record
            else:
                handle_error(element)

    if not decoder.found_array:
        logger.warning("未在 %s 中找到 %r 数组", p, key)
