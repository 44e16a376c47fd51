"""A flat file system stored in chunks of simulated flash memory."""

from __future__ import annotations

import errno
import os
import stat as _stat
from collections.abc import Iterator
from typing import Any

from mbsim.flash import FILE_START, FREED_CHUNK, UNUSED_CHUNK, Chunk, ChunkStore


def _os_error(code: int) -> OSError:
    return OSError(code, os.strerror(code))


def _parse_mode(mode: str) -> tuple[bool, bool]:
    """Return (writing, binary) for a mode made of at most one of r/w and one of b/t."""
    read: bool | None = None
    text: bool | None = None
    for char in mode:
        if char in ("r", "w"):
            if read is not None:
                raise ValueError("illegal mode")
            read = char == "r"
        elif char in ("b", "t"):
            if text is not None:
                raise ValueError("illegal mode")
            text = char == "t"
        else:
            raise ValueError("illegal mode")
    return read is False, text is False


class FileHandle:
    """An open file in a FlashFileSystem, either for reading or for writing."""

    def __init__(
        self, fs: FlashFileSystem, start_chunk: int, writable: bool, binary: bool
    ) -> None:
        self._fs = fs
        self._start = start_chunk
        self._seek_chunk = start_chunk
        self._seek_offset = fs.store.chunk(start_chunk).name_len + 2
        self._writable = writable
        self._open = True
        self.binary = binary

    def __repr__(self) -> str:
        kind = "FileIO" if self.binary else "TextIO"
        state = "open" if self._open else "closed"
        return f"<{kind} {self.name()!r} {state}>"

    @property
    def closed(self) -> bool:
        """Whether the handle has been closed."""
        return not self._open

    def _chunk(self, index: int) -> Chunk | None:
        store = self._fs.store
        if 1 <= index <= store.chunk_count:
            return store.chunk(index)
        return None

    def _check(self, for_writing: bool) -> None:
        if not self._open:
            raise ValueError("I/O operation on closed file")
        start = self._fs.store.chunk(self._start)
        if self._writable != for_writing or start.marker == FREED_CHUNK:
            raise _os_error(errno.EBADF)

    def _advance(self, count: int, write: bool) -> None:
        store = self._fs.store
        self._seek_offset += count
        if self._seek_offset != store.data_per_chunk:
            return
        self._seek_offset = 0
        if write:
            following = store.find_chunk_and_erase()
            if following is None:
                store.clear_file(self._start)
                self._open = False
                raise _os_error(errno.ENOSPC)
            store.chunk(self._seek_chunk).next_chunk = following
            store.chunk(following).marker = self._seek_chunk
        self._seek_chunk = store.chunk(self._seek_chunk).next_chunk

    def _read_bytes(self, size: int | None) -> bytes:
        self._check(for_writing=False)
        store = self._fs.store
        out = bytearray()
        while size is None or len(out) < size:
            chunk = self._chunk(self._seek_chunk)
            if chunk is None:
                break
            to_read = store.data_per_chunk - self._seek_offset
            if chunk.next_chunk == UNUSED_CHUNK:
                end_offset = store.chunk(self._start).end_offset
                if end_offset == UNUSED_CHUNK:
                    to_read = 0
                else:
                    to_read = min(to_read, end_offset - self._seek_offset)
            if size is not None:
                to_read = min(to_read, size - len(out))
            if to_read <= 0:
                break
            out += chunk[self._seek_offset : self._seek_offset + to_read]
            self._advance(to_read, write=False)
        return bytes(out)

    def _result(self, data: bytes) -> bytes | str:
        return data if self.binary else data.decode("utf-8")

    def read(self, size: int = -1) -> bytes | str:
        """Read up to ``size`` bytes, or everything left if ``size`` is negative."""
        return self._result(self._read_bytes(None if size < 0 else size))

    def readinto(self, buf: Any) -> int:
        """Read into a writable buffer; return the number of bytes stored."""
        target = memoryview(buf).cast("B")
        data = self._read_bytes(len(target))
        target[: len(data)] = data
        return len(data)

    def readline(self) -> bytes | str:
        """Read up to and including the next newline."""
        line = bytearray()
        while True:
            byte = self._read_bytes(1)
            if not byte:
                break
            line += byte
            if byte == b"\n":
                break
        return self._result(bytes(line))

    def write(self, data: Any) -> int:
        """Write data; return the number of bytes written."""
        if isinstance(data, str):
            if self.binary:
                raise TypeError("a bytes-like object is required")
            payload = data.encode("utf-8")
        else:
            payload = memoryview(data).tobytes()
        self._check(for_writing=True)
        store = self._fs.store
        view = memoryview(payload)
        while view:
            room = store.data_per_chunk - self._seek_offset
            part = view[:room]
            chunk = store.chunk(self._seek_chunk)
            chunk[self._seek_offset : self._seek_offset + len(part)] = part.tobytes()
            self._advance(len(part), write=True)
            view = view[len(part) :]
        return len(payload)

    def close(self) -> None:
        """Close the file, recording where its data ends if it was written."""
        if self._writable:
            self._fs.store.chunk(self._start).end_offset = self._seek_offset
        self._open = False

    def name(self) -> str:
        """Return the file's name."""
        return self._fs.store.chunk(self._start).name.decode("utf-8")

    def writable(self) -> bool:
        """Whether the file was opened for writing."""
        return self._writable

    def __enter__(self) -> FileHandle:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class FlashFileSystem:
    """Named files stored as linked lists of flash chunks."""

    def __init__(
        self, pages: int = 8, chunks_per_page: int = 32, seed: Any = None
    ) -> None:
        self.store = ChunkStore(pages, chunks_per_page, seed=seed)

    def open(self, name: str, mode: str = "r") -> FileHandle:
        """Open a file; mode is "r" or "w", optionally with "b" or "t"."""
        writing, binary = _parse_mode(mode)
        encoded = name.encode("utf-8")
        if len(encoded) > self.store.max_filename_length:
            raise _os_error(errno.ENOENT)
        index = self.store.find_file(encoded)
        if writing:
            if index is not None:
                self.store.clear_file(index)
            index = self.store.find_chunk_and_erase()
            if index is None:
                raise _os_error(errno.ENOSPC)
            chunk = self.store.chunk(index)
            chunk.marker = FILE_START
            chunk.name = encoded
        elif index is None:
            raise _os_error(errno.ENOENT)
        return FileHandle(self, index, writing, binary)

    def _find(self, name: str) -> int:
        index = self.store.find_file(name)
        if index is None:
            raise _os_error(errno.ENOENT)
        return index

    def remove(self, name: str) -> None:
        """Delete a file."""
        self.store.clear_file(self._find(name))

    def listdir(self) -> list[str]:
        """Return the names of all files."""
        return [
            self.store.chunk(index).name.decode("utf-8")
            for index in self.store.file_starts()
        ]

    def ilistdir(self) -> Iterator[tuple[str, int, int]]:
        """Yield (name, type, inode) for every file; all entries are regular files."""
        for index in self.store.file_starts():
            yield self.store.chunk(index).name.decode("utf-8"), _stat.S_IFREG, 0

    def size(self, name: str) -> int:
        """Return the size of a file in bytes."""
        store = self.store
        chunk = store.chunk(self._find(name))
        end_offset = chunk.end_offset
        offset = chunk.name_len + 2
        length = 0
        while chunk.next_chunk != UNUSED_CHUNK:
            length += store.data_per_chunk - offset
            chunk = store.chunk(chunk.next_chunk)
            offset = 0
        return length + end_offset - offset

    def stat(self, name: str) -> tuple[int, ...]:
        """Return a 10-field stat tuple; only the mode and size are filled in."""
        file_size = self.size(name)
        return (_stat.S_IFREG, 0, 0, 0, 0, 0, file_size, 0, 0, 0)

    def exists(self, name: str) -> bool:
        """Whether a file with this name exists."""
        return self.store.find_file(name) is not None