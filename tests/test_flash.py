import pytest

from mbsim.flash import (
    FILE_START,
    FREED_CHUNK,
    MAX_FILENAME_LENGTH,
    UNUSED_CHUNK,
    ChunkStore,
)


@pytest.fixture
def store():
    return ChunkStore(pages=3, chunks_per_page=4, chunk_size=128, seed=1)


def fill_all(store):
    for index in range(1, store.chunk_count + 1):
        chunk = store.chunk(index)
        chunk.marker = FILE_START
        chunk.name = f"f{index}"


def test_layout(store):
    assert store.chunk_count == 2 * 4
    assert store.data_per_chunk == 126
    assert store.max_filename_length == MAX_FILENAME_LENGTH
    assert all(
        store.chunk(i).marker == UNUSED_CHUNK for i in range(1, store.chunk_count + 1)
    )


def test_start_index_in_range_and_seeded():
    first = ChunkStore(pages=3, chunks_per_page=4, seed=7)
    second = ChunkStore(pages=3, chunks_per_page=4, seed=7)
    assert first.start_index == second.start_index
    assert 1 <= first.start_index <= first.chunk_count


@pytest.mark.parametrize(
    "kwargs",
    [
        {"pages": 1, "chunks_per_page": 4},
        {"pages": 10, "chunks_per_page": 32},
        {"pages": 3, "chunks_per_page": 4, "chunk_size": 4},
        {"pages": 3, "chunks_per_page": 0},
    ],
)
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        ChunkStore(**kwargs)


def test_chunk_index_out_of_range(store):
    with pytest.raises(IndexError):
        store.chunk(0)
    with pytest.raises(IndexError):
        store.chunk(store.chunk_count + 1)


def test_empty_store_returns_start_index(store):
    assert store.find_chunk_and_erase() == store.start_index


def test_find_file_round_trip(store):
    index = store.find_chunk_and_erase()
    chunk = store.chunk(index)
    chunk.marker = FILE_START
    chunk.name = "hello.py"
    assert chunk.name == b"hello.py"
    assert chunk.name_len == len("hello.py")
    assert store.find_file("hello.py") == index
    assert store.find_file(b"hello.py") == index
    assert store.find_file("hello") is None
    assert list(store.file_starts()) == [index]


def test_name_too_long(store):
    with pytest.raises(ValueError):
        store.chunk(1).name = "x" * (store.max_filename_length + 1)


def test_programming_only_clears_bits(store):
    chunk = store.chunk(1)
    chunk.marker = FREED_CHUNK
    chunk.marker = FILE_START
    assert chunk.marker == FREED_CHUNK


def test_chunk_data_slice_round_trip(store):
    chunk = store.chunk(2)
    chunk[10:13] = b"abc"
    assert chunk[10:13] == b"abc"
    chunk[0] = 7
    assert chunk.end_offset == 7
    assert len(chunk) == store.data_per_chunk
    with pytest.raises(ValueError):
        chunk[0:2] = b"abc"


def test_clear_file_follows_links(store):
    first, second = 1, 5
    store.chunk(first).marker = FILE_START
    store.chunk(first).name = "data"
    store.chunk(first).next_chunk = second
    store.chunk(second).marker = first
    store.clear_file(first)
    assert store.chunk(first).marker == FREED_CHUNK
    assert store.chunk(second).marker == FREED_CHUNK
    assert store.find_file("data") is None


def test_full_store_has_no_space(store):
    fill_all(store)
    assert store.find_chunk_and_erase() is None


def test_freed_page_is_erased_and_reused(store):
    fill_all(store)
    cpp = store.chunks_per_page
    page_chunks = range(cpp + 1, 2 * cpp + 1)
    for index in page_chunks:
        store.chunk(index).marker = FREED_CHUNK
    assert store.find_chunk_and_erase() == cpp + 1
    assert all(store.chunk(i).marker == UNUSED_CHUNK for i in page_chunks)
    assert store.find_file("f1") == 1


def test_scattered_free_chunk_triggers_sweep(store):
    fill_all(store)
    freed = 3
    store.chunk(freed).marker = FREED_CHUNK
    assert store.find_chunk_and_erase() == freed
    assert store.chunk(freed).marker == UNUSED_CHUNK
    for index in range(1, store.chunk_count + 1):
        if index != freed:
            assert store.find_file(f"f{index}") == index


def test_sweep_preserves_files_both_ways(store):
    store.chunk(2).marker = FILE_START
    store.chunk(2).name = "keep"
    store.chunk(6).marker = FREED_CHUNK
    store.sweep()
    assert store.find_file("keep") == 2
    assert store.chunk(6).marker == UNUSED_CHUNK
    store.sweep()
    assert store.find_file("keep") == 2
    assert list(store.file_starts()) == [2]