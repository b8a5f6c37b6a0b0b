import warnings

from _scanio.errors import BufferLimitError, WrongFileModeError

DEFAULT_CAPACITY = 8 * 1024
DEFAULT_MAX_SIZE = 64 * 1024 * 1024


class ElasticBuffer:
    """
    A read buffer over a binary stream which can temporarily hold more than
    its capacity.

    The buffer is a single bytearray with a read and a write cursor. The
    bytes between the cursors are the window: read from the stream but not
    yet consumed. fill() tops the window up to capacity, moving the window
    to the front of the storage first. stretch() reads past capacity while
    keeping the window intact, so that a match near the end of the window
    can be resolved by looking further ahead. The storage never grows past
    max_size, and once enough has been consumed that the window fits in
    capacity again, it contracts back to capacity.

    >>> import io
    >>> buffer = ElasticBuffer(io.BytesIO(b"hello world"), capacity=4)
    >>> buffer.fill()
    4
    >>> buffer.stretch(4)
    4
    >>> buffer.window
    b'hello wo'
    >>> buffer.consume(6)
    >>> buffer.window, buffer.size
    (b'wo', 4)

    """

    def __init__(self, stream, capacity=DEFAULT_CAPACITY, max_size=DEFAULT_MAX_SIZE):
        """
        :param stream: A binary stream, ie. any object with read(size)
            returning bytes.
        :param capacity: The baseline number of bytes buffered.
        :param max_size: The maximum number of bytes the buffer may
            allocate when stretched, None for no limit.
        """
        if capacity < 1:
            raise ValueError(f"Buffer capacity has to be positive, got {capacity}")
        if max_size is not None and max_size < capacity:
            raise ValueError(
                f"Maximum buffer size {max_size} is less than capacity {capacity}"
            )
        self._stream = stream
        self._read = getattr(stream, "read1", stream.read)
        self._capacity = capacity
        self._max_size = max_size
        self._data = bytearray(capacity)
        self._read_pos = 0
        self._write_pos = 0
        self._eof = False
        self._failure = None

    @property
    def stream(self):
        return self._stream

    @property
    def capacity(self):
        return self._capacity

    @property
    def max_size(self):
        return self._max_size

    @property
    def size(self):
        """
        The number of bytes currently allocated for the buffer.
        """
        return len(self._data)

    @property
    def is_stretched(self):
        return len(self._data) > self._capacity

    @property
    def window(self):
        """
        A copy of the bytes read but not yet consumed.
        """
        return self.peek(len(self))

    @property
    def at_eof(self):
        """
        Whether no more bytes can be read from the stream, either because
        it ended or because reading from it failed.
        """
        return self._eof or self._failure is not None

    @property
    def exhausted(self):
        """
        Whether the stream has ended and every byte has been consumed.
        """
        return self._eof and self._read_pos == self._write_pos

    @property
    def failure(self):
        return self._failure

    def __len__(self):
        return self._write_pos - self._read_pos

    def clear_failure(self):
        """
        Forget about a failed read so that the next fill or stretch reads
        from the stream again.
        """
        self._failure = None

    def fill(self):
        """
        Read from the stream until the window holds capacity bytes or the
        stream is exhausted.

        :returns: The number of bytes in the window.
        """
        if len(self) >= self._capacity:
            return len(self)
        self._compact()
        while len(self) < self._capacity and not self.at_eof:
            self._read_into(self._capacity - len(self))
        return len(self)

    def stretch(self, by):
        """
        Grow the window by reading up to by more bytes. The bytes already
        in the window are kept, but when the storage has to grow, the
        consumed bytes in front of the window are reclaimed first, so the
        storage never grows past max_size.

        :returns: The number of bytes read, 0 when at end of stream.
        :raises BufferLimitError: If the window already holds max_size bytes.
        """
        if self.at_eof:
            return 0
        if self._max_size is not None:
            by = min(by, self._max_size - len(self))
            if by <= 0:
                raise BufferLimitError(
                    f"Can not buffer more than {self._max_size} bytes"
                )
        if self._write_pos + by > len(self._data):
            self._compact()
            missing = self._write_pos + by - len(self._data)
            if missing > 0:
                self._data.extend(bytes(missing))
        return self._read_into(by)

    def find(self, sub, start=0):
        """
        Like bytes.find on the window, without copying it.

        :returns: The offset of sub in the window at or after start, or -1.
        """
        found = self._data.find(sub, self._read_pos + start, self._write_pos)
        if found < 0:
            return found
        return found - self._read_pos

    def peek(self, n):
        """
        A copy of the first n bytes of the window.
        """
        return bytes(self._data[self._read_pos : self._read_pos + min(n, len(self))])

    def consume(self, n):
        """
        Discard the first n bytes of the window, contracting the buffer
        back to capacity when the rest of the window fits.
        """
        self._read_pos += max(0, min(n, len(self)))
        if self._read_pos == self._write_pos:
            self._read_pos = self._write_pos = 0
        if self.is_stretched and len(self) <= self._capacity:
            self._compact()
            del self._data[self._capacity :]

    def _compact(self):
        if self._read_pos == 0:
            return
        length = len(self)
        self._data[:length] = self._data[self._read_pos : self._write_pos]
        self._read_pos = 0
        self._write_pos = length

    def _read_into(self, size):
        try:
            chunk = self._read(size)
        except OSError as err:
            warnings.warn(
                f"Reading from {self._stream!r} failed, "
                f"treating it as end of stream: {err}"
            )
            self._failure = err
            return 0
        if isinstance(chunk, str):
            raise WrongFileModeError(
                "Scanner requires a binary stream, was given a text stream"
            )
        if not chunk:
            self._eof = True
            return 0
        end = self._write_pos + len(chunk)
        self._data[self._write_pos : end] = chunk
        self._write_pos = end
        return len(chunk)
