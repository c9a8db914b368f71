import struct

import bson

from ring_buffer import RingBuffer

DEFAULT_CAPACITY = 2 ** 20
ENTRY_HEADER_FMT = "<QI"  # entry_id, body_length
MAX_ENTRY_ID = 2 ** 64 - 1


class JournalClosedError(Exception):
    pass


class JournalCorruptedError(Exception):
    def __init__(self, message, offset):
        super().__init__(message)
        self.offset = offset


def encode_entry(entry_id, obj):
    """Frame a single entry the same way JournalWriter lays it out in its buffer"""
    body = bson.dumps(obj)
    return struct.pack(ENTRY_HEADER_FMT, entry_id, len(body)) + body


class JournalWriter(object):
    """Appends BSON entries to a RingBuffer and drains it into a binary sink.

    Every time the buffer wraps, the part of it that hasn't been handed to the
    sink yet is written out, so the sink always ends up holding the entries as
    one contiguous stream. Call flush() to push out whatever sits in the buffer
    before it has wrapped.
    """

    def __init__(self, sink, capacity=DEFAULT_CAPACITY):
        self.sink = sink
        self._ring = RingBuffer(capacity)
        self._ring.add_wrap_listener(self._on_buffer_full)
        self._flushed_upto = 0
        self._bytes_written = 0
        self._wrap_count = 0
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def bytes_written(self):
        return self._bytes_written

    def wrap_count(self):
        return self._wrap_count

    def _on_buffer_full(self):
        self._wrap_count += 1
        self.sink.write(bytes(self._ring.as_array()[self._flushed_upto :]))
        self._flushed_upto = 0

    def append(self, entry_id, obj):
        """Write one entry. Returns True if the buffer wrapped while writing it."""
        if self.closed:
            raise JournalClosedError("Can't append to a closed journal")
        if not 0 <= entry_id <= MAX_ENTRY_ID:
            raise ValueError("Entry id {} doesn't fit in 64 bits".format(entry_id))

        body = bson.dumps(obj)
        wrapped = self._ring.write_i64(entry_id)
        wrapped |= self._ring.write_i32(len(body))
        wrapped |= self._ring.write_bytes(body)
        self._bytes_written += struct.calcsize(ENTRY_HEADER_FMT) + len(body)
        return wrapped

    def flush(self):
        position = self._ring.position()
        if position > self._flushed_upto:
            self.sink.write(bytes(self._ring.as_array()[self._flushed_upto : position]))
            self._flushed_upto = position
        if hasattr(self.sink, "flush"):
            self.sink.flush()

    def close(self):
        if self.closed:
            return
        self.flush()
        self._ring.remove_wrap_listener(self._on_buffer_full)
        self.closed = True


class JournalReader(object):
    """Reads (entry_id, obj) tuples back out of a stream written by JournalWriter"""

    def __init__(self, source):
        self.source = source
        self.offset = 0

    def __iter__(self):
        return self

    def __next__(self):
        entry_start = self.offset
        header_size = struct.calcsize(ENTRY_HEADER_FMT)
        header = self._read_exactly(header_size, entry_start, allow_eof=True)
        if header is None:
            raise StopIteration
        entry_id, length = struct.unpack(ENTRY_HEADER_FMT, header)
        body = self._read_exactly(length, entry_start)
        try:
            obj = bson.loads(body)
        except Exception as e:
            raise JournalCorruptedError(
                "Entry {} at offset {} has an undecodable body: {}".format(
                    entry_id, entry_start, e
                ),
                entry_start,
            ) from e
        return entry_id, obj

    def _read_exactly(self, length, entry_start, allow_eof=False):
        data = self.source.read(length)
        if allow_eof and len(data) == 0:
            return None
        if len(data) != length:
            raise JournalCorruptedError(
                "Truncated entry at offset {}: wanted {} bytes, got {}".format(
                    entry_start, length, len(data)
                ),
                entry_start,
            )
        self.offset += length
        return data


def read_entries(source):
    return list(JournalReader(source))
