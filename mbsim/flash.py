"""Chunk storage in simulated flash memory, the basis of the file system.

The flash region is a number of pages split into fixed-size chunks.  One
spare page holds a persistent-data marker and is used when sweeping; it is
either the first or the last page.  Each chunk holds a one-byte marker, its
data and a one-byte link to the next chunk of the file.  A file's first chunk
starts its data with a header: the end offset, the name length and the name.
Chunks are numbered from 1.

Programming flash can only clear bits; erasing a page sets them all.
"""

from __future__ import annotations

import operator
import random
from collections.abc import Iterator
from typing import Any

UNUSED_CHUNK = 255
FREED_CHUNK = 0
FILE_START = 254
PERSISTENT_DATA_MARKER = 253

MAX_FILENAME_LENGTH = 120
MAX_CHUNKS_IN_FILE_SYSTEM = 252

_END_OFFSET = 1
_NAME_LEN = 2
_NAME = 3


def _name_bytes(name: str | bytes) -> bytes:
    return name.encode("utf-8") if isinstance(name, str) else bytes(name)


class Chunk:
    """A view of one chunk in a ChunkStore; assigning to it programs flash."""

    __slots__ = ("_store", "index")

    def __init__(self, store: ChunkStore, index: int) -> None:
        self._store = store
        self.index = index

    def __repr__(self) -> str:
        return f"<Chunk {self.index} marker={self.marker}>"

    @property
    def address(self) -> int:
        """Byte offset of the chunk in the flash region."""
        return self._store._address(self.index)

    def _get(self, offset: int) -> int:
        return self._store.flash[self.address + offset]

    def _read(self, offset: int, length: int) -> bytes:
        start = self.address + offset
        return bytes(self._store.flash[start : start + length])

    def _put(self, offset: int, data: bytes) -> None:
        self._store._program(self.address + offset, data)

    @property
    def marker(self) -> int:
        """UNUSED, FREED, FILE_START or the index of the previous chunk."""
        return self._get(0)

    @marker.setter
    def marker(self, value: int) -> None:
        self._put(0, bytes([value]))

    @property
    def next_chunk(self) -> int:
        """Index of the next chunk of the file, or UNUSED_CHUNK at the end."""
        return self._get(self._store.chunk_size - 1)

    @next_chunk.setter
    def next_chunk(self, value: int) -> None:
        self._put(self._store.chunk_size - 1, bytes([value]))

    @property
    def end_offset(self) -> int:
        """Offset of the end of data in the file's last chunk (header field)."""
        return self._get(_END_OFFSET)

    @end_offset.setter
    def end_offset(self, value: int) -> None:
        self._put(_END_OFFSET, bytes([value]))

    @property
    def name_len(self) -> int:
        """Length of the file name (header field)."""
        return self._get(_NAME_LEN)

    @name_len.setter
    def name_len(self, value: int) -> None:
        self._put(_NAME_LEN, bytes([value]))

    @property
    def name(self) -> bytes:
        """The file name stored in the header."""
        length = min(self.name_len, self._store.data_per_chunk - 2)
        return self._read(_NAME, length)

    @name.setter
    def name(self, value: str | bytes) -> None:
        data = _name_bytes(value)
        if len(data) > self._store.max_filename_length:
            raise ValueError("file name too long")
        self.name_len = len(data)
        self._put(_NAME, data)

    @property
    def data(self) -> bytes:
        """The chunk's data area, header included."""
        return self._read(1, self._store.data_per_chunk)

    def __len__(self) -> int:
        return self._store.data_per_chunk

    def __getitem__(self, key: Any) -> Any:
        return self.data[key]

    def __setitem__(self, key: Any, value: Any) -> None:
        size = self._store.data_per_chunk
        if isinstance(key, slice):
            start, stop, step = key.indices(size)
            if step != 1:
                raise ValueError("extended slices are not supported")
            data = bytes(value)
            if len(data) != max(0, stop - start):
                raise ValueError("data length does not match slice")
            self._put(1 + start, data)
        else:
            index = operator.index(key)
            if index < 0:
                index += size
            if not 0 <= index < size:
                raise IndexError("chunk data index out of range")
            self._put(1 + index, bytes([value]))


class ChunkStore:
    """Simulated flash pages divided into numbered chunks."""

    def __init__(
        self,
        pages: int = 8,
        chunks_per_page: int = 32,
        chunk_size: int = 128,
        seed: Any = None,
    ) -> None:
        if pages < 2:
            raise ValueError("at least two pages are needed")
        if chunks_per_page < 1:
            raise ValueError("a page must hold at least one chunk")
        if not 8 <= chunk_size <= 256:
            raise ValueError("chunk size must be between 8 and 256")
        chunk_count = (pages - 1) * chunks_per_page
        if chunk_count > MAX_CHUNKS_IN_FILE_SYSTEM:
            raise ValueError(
                f"at most {MAX_CHUNKS_IN_FILE_SYSTEM} chunks are supported"
            )
        self.pages = pages
        self.chunks_per_page = chunks_per_page
        self.chunk_size = chunk_size
        self.page_size = chunks_per_page * chunk_size
        self.data_per_chunk = chunk_size - 2
        self.max_filename_length = min(MAX_FILENAME_LENGTH, self.data_per_chunk - 3)
        self.chunk_count = chunk_count
        self.flash = bytearray(b"\xff") * (pages * self.page_size)
        self._rng = random.Random(seed)
        self.start_index = 1
        self._base = 0
        self._init()

    def _init(self) -> None:
        self.start_index = self._rng.getrandbits(32) % self.chunk_count + 1
        if self.flash[0] == PERSISTENT_DATA_MARKER:
            self._base = self.page_size
        else:
            last = (self.pages - 1) * self.page_size
            if self.flash[last] != PERSISTENT_DATA_MARKER:
                self._program(last, bytes([PERSISTENT_DATA_MARKER]))
            self._base = 0

    def _address(self, index: int) -> int:
        return self._base + (index - 1) * self.chunk_size

    def _program(self, address: int, data: bytes) -> None:
        if address < 0 or address + len(data) > len(self.flash):
            raise IndexError("flash address out of range")
        for offset, byte in enumerate(data):
            self.flash[address + offset] &= byte

    def _erase_page(self, page: int) -> None:
        start = page * self.page_size
        self.flash[start : start + self.page_size] = b"\xff" * self.page_size

    def _copy_page(self, dest: int, src: int) -> None:
        self._erase_page(dest)
        src_start = src * self.page_size
        dest_start = dest * self.page_size
        for offset in range(0, self.page_size, self.chunk_size):
            if self.flash[src_start + offset] != FREED_CHUNK:
                chunk = bytes(
                    self.flash[src_start + offset : src_start + offset + self.chunk_size]
                )
                self._program(dest_start + offset, chunk)

    def _search_order(self) -> Iterator[int]:
        count = self.chunk_count
        for step in range(count):
            yield (self.start_index - 1 + step) % count + 1

    def chunk(self, index: int) -> Chunk:
        """Return a view of the chunk with the given number (from 1)."""
        index = operator.index(index)
        if not 1 <= index <= self.chunk_count:
            raise IndexError("chunk index out of range")
        return Chunk(self, index)

    def file_starts(self) -> Iterator[int]:
        """Yield the numbers of chunks that start a file, in order."""
        return (
            index
            for index in range(1, self.chunk_count + 1)
            if self.flash[self._address(index)] == FILE_START
        )

    def find_file(self, name: str | bytes) -> int | None:
        """Return the first chunk of the file with this name, or None."""
        wanted = _name_bytes(name)
        for index in self.file_starts():
            chunk = Chunk(self, index)
            if chunk.name_len == len(wanted) and chunk.name == wanted:
                return index
        return None

    def find_chunk_and_erase(self) -> int | None:
        """Return an erased chunk, erasing or sweeping as needed; None if full."""
        for index in self._search_order():
            if self.flash[self._address(index)] == UNUSED_CHUNK:
                return index

        freed = 0
        for index in self._search_order():
            address = self._address(index)
            if self.flash[address] == FREED_CHUNK:
                freed += 1
            if address % self.page_size == 0:
                markers = self.flash[address : address + self.page_size : self.chunk_size]
                if all(marker == FREED_CHUNK for marker in markers):
                    self._erase_page(address // self.page_size)
                    return index
        if freed == 0:
            return None
        self.sweep()
        return self.find_chunk_and_erase()

    def sweep(self) -> None:
        """Shift every page by one towards the spare page, erasing freed chunks."""
        last = self.pages - 1
        if self.flash[0] == PERSISTENT_DATA_MARKER:
            config = self.flash[0]
            page, end, step = 0, last, 1
        else:
            config = self.flash[last * self.page_size]
            page, end, step = last, 0, -1
        while page != end:
            following = page + step
            self._erase_page(page)
            self._copy_page(page, following)
            page = following
        self._erase_page(end)
        self._program(end * self.page_size, bytes([config]))
        self._init()

    def clear_file(self, chunk: int) -> None:
        """Mark every chunk of the file starting at ``chunk`` as freed."""
        while True:
            view = self.chunk(chunk)
            view.marker = FREED_CHUNK
            chunk = view.next_chunk
            if chunk > self.chunk_count:
                break