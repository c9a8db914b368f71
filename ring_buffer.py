DEBUG = False

SIZE_OF_INT = 4
SIZE_OF_LONG = 8


class InvalidCapacityError(ValueError):
    def __init__(self, message, capacity):
        super().__init__(message)
        self.capacity = capacity


class PositionOutOfRangeError(ValueError):
    def __init__(self, message, position):
        super().__init__(message)
        self.position = position


class RingBuffer(object):
    """A fixed size circular buffer of bytes with a single write cursor.

    When a write fills the last slot the cursor goes back to 0 and every
    registered wrap listener is called, then writing carries on from the start
    of the buffer. Nothing is ever refused: old bytes simply get overwritten.
    """

    def __init__(self, size):
        if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
            raise InvalidCapacityError(
                "Buffer size must be a positive integer, got {!r}".format(size), size
            )
        self.buffer = bytearray(size)
        self.cursor = 0
        self._wrap_listeners = []

    def __repr__(self):
        return "RingBuffer(size={}, position={}, buffer={})".format(
            len(self.buffer), self.cursor, self.buffer
        )

    def __len__(self):
        return len(self.buffer)

    def __getitem__(self, index):
        return self.read_at(index)

    def size(self):
        return len(self.buffer)

    def position(self):
        return self.cursor

    def set_position(self, value):
        if value < 0 or value >= len(self.buffer):
            message = "Position {} is outside buffer of size {}".format(
                value, len(self.buffer)
            )
            raise PositionOutOfRangeError(message, value)
        self.cursor = value

    def add_wrap_listener(self, callback):
        self._wrap_listeners.append(callback)

    def remove_wrap_listener(self, callback):
        # raises ValueError for a callback that was never added
        self._wrap_listeners.remove(callback)

    def _notify_wrapped(self):
        if DEBUG:
            print("wrapped, notifying", len(self._wrap_listeners), "listeners")
        # copy so listeners can unsubscribe while being notified
        for listener in list(self._wrap_listeners):
            listener()

    def write_byte(self, value):
        """Write one byte at the cursor. Returns True if the buffer wrapped."""
        if not 0 <= value <= 0xFF:
            raise ValueError("{} does not fit in a byte".format(value))

        self.buffer[self.cursor] = value
        if self.cursor == len(self.buffer) - 1:
            self.cursor = 0
            self._notify_wrapped()
            return True

        self.cursor += 1
        return False

    def _write_little_endian(self, value, width):
        wrapped = False
        for i in range(width):
            wrapped |= self.write_byte((value >> (i * 8)) & 0xFF)
        return wrapped

    def write_i32(self, value):
        return self._write_little_endian(value, SIZE_OF_INT)

    def write_i64(self, value):
        return self._write_little_endian(value, SIZE_OF_LONG)

    def write_bytes(self, bs, offset=0, count=None):
        """Write count bytes of bs starting at offset (default: all of bs).

        The range is checked before anything is written, so a bad range never
        leaves a partial write behind.
        """
        if count is None:
            count = len(bs) - offset
        if offset < 0 or count < 0 or offset + count > len(bs):
            message = "Can't write {} bytes from offset {} of input of length {}".format(
                count, offset, len(bs)
            )
            raise IndexError(message)

        if DEBUG:
            print("writing", bs[offset : offset + count], "at", self.cursor)
        wrapped = False
        for i in range(offset, offset + count):
            wrapped |= self.write_byte(bs[i])
        return wrapped

    def read_at(self, index):
        if index < 0 or index >= len(self.buffer):
            raise IndexError(
                "Index {} is outside buffer of size {}".format(index, len(self.buffer))
            )
        return self.buffer[index]

    def as_array(self):
        """The backing bytearray itself; writes through it show up in the buffer"""
        return self.buffer
