from __future__ import annotations

import json
import logging
from typing import List, Optional

from livetrans.contracts import Translation
from livetrans.errors import SchemaMismatch

logger = logging.getLogger(__name__)


class StreamingTranslationParser:
    """
    Incremental extractor for a stream of concatenated JSON objects: ``{...}{...}{...}``.

    Deltas are appended to a pending buffer and scanned with a brace-depth counter
    that ignores braces and quotes inside string literals (escapes included).
    Scan state survives between feeds, so the result depends only on the
    concatenated text and never on where the deltas were split.
    """

    def __init__(self) -> None:
        self._buf = ""
        self._pos = 0
        self._depth = 0
        self._in_string = False
        self._escaped = False
        self.accepted = 0
        self.rejected = 0

    @property
    def pending(self) -> str:
        return self._buf

    def reset(self) -> None:
        self._buf = ""
        self._pos = 0
        self._depth = 0
        self._in_string = False
        self._escaped = False

    def feed(self, delta: str) -> List[Translation]:
        if delta:
            self._buf += delta

        out: List[Translation] = []
        while True:
            end = self._scan()
            if end is None:
                break
            raw = self._buf[:end]
            self._buf = self._buf[end:]
            self._pos = 0
            record = self._decode(raw)
            if record is not None:
                out.append(record)
        return out

    def finish(self) -> None:
        leftover = self._buf.strip()
        if leftover:
            logger.warning(
                "stream_ended_with_partial_record",
                extra={"pending_chars": len(leftover), "depth": self._depth},
            )
        self.reset()

    def _skip_to_object(self) -> bool:
        start = self._buf.find("{", self._pos)
        if start < 0:
            dropped = self._buf.strip()
            if dropped:
                logger.debug("stream_text_skipped", extra={"chars": len(dropped)})
            self._buf = ""
            self._pos = 0
            return False
        if self._buf[:start].strip():
            logger.debug("stream_text_skipped", extra={"chars": start})
        self._buf = self._buf[start:]
        self._pos = 1
        self._depth = 1
        return True

    def _scan(self) -> Optional[int]:
        """Return the end offset of the first complete object, or None if it is not complete yet."""
        if self._depth == 0 and not self._skip_to_object():
            return None

        buf = self._buf
        i = self._pos
        n = len(buf)
        while i < n:
            ch = buf[i]
            if self._in_string:
                if self._escaped:
                    self._escaped = False
                elif ch == "\\":
                    self._escaped = True
                elif ch == '"':
                    self._in_string = False
            elif ch == '"':
                self._in_string = True
            elif ch == "{":
                self._depth += 1
            elif ch == "}":
                self._depth -= 1
                if self._depth == 0:
                    return i + 1
            i += 1

        self._pos = i
        return None

    def _decode(self, raw: str) -> Optional[Translation]:
        try:
            try:
                payload = json.loads(raw)
            except json.JSONDecodeError as e:
                raise SchemaMismatch(f"invalid JSON object: {e.msg}") from e
            record = Translation.from_payload(payload)
        except SchemaMismatch as e:
            self.rejected += 1
            logger.warning("record_rejected", extra={"reason": str(e), "chars": len(raw)})
            return None
        self.accepted += 1
        return record
