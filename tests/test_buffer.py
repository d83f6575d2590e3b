import io

from wirehttp.buffer import INIT_BUFFER_SIZE, MAX_BUFFER_SIZE, BufReader


class SlowRead:
    def __init__(self, state=0):
        self.state = state

    def read(self, size=-1):
        state = self.state
        self.state += 1
        chunk = (b"foo", b"bar", b"baz")[state % 3]
        return chunk if size < 0 else chunk[:size]


def test_consume_and_get_buf():
    rdr = BufReader(SlowRead(0))
    rdr.read_into_buf()
    rdr.consume(1)
    assert rdr.get_buf() == b"oo"
    rdr.read_into_buf()
    rdr.read_into_buf()
    assert rdr.get_buf() == b"oobarbaz"
    rdr.consume(5)
    assert rdr.get_buf() == b"baz"
    rdr.consume(3)
    assert rdr.get_buf() == b""
    assert rdr.pos == 0
    assert rdr.cap == 0


def test_read_small_goes_through_buffer():
    rdr = BufReader(io.BytesIO(b"hello world"))
    assert rdr.read(5) == b"hello"
    assert rdr.get_buf() == b" world"
    assert rdr.read(100) == b" world"
    assert rdr.read(10) == b""


def test_read_large_bypasses_buffer():
    data = b"x" * 10000
    rdr = BufReader(io.BytesIO(data), capacity=16)
    assert rdr.read(10000) == data
    assert rdr.get_buf() == b""


def test_read_all():
    data = bytes(range(256)) * 50
    rdr = BufReader(io.BytesIO(data), capacity=64)
    assert rdr.read(3) == data[:3]
    assert rdr.read() == data[3:]


def test_fill_buf_does_not_consume():
    rdr = BufReader(io.BytesIO(b"abc"))
    assert rdr.fill_buf() == b"abc"
    assert rdr.fill_buf() == b"abc"
    rdr.consume(2)
    assert rdr.fill_buf() == b"c"


def test_consume_is_clamped():
    rdr = BufReader(io.BytesIO(b"abc"))
    rdr.fill_buf()
    rdr.consume(100)
    assert (rdr.pos, rdr.cap) == (0, 0)


def test_buffer_grows_when_full():
    data = b"y" * 5000
    rdr = BufReader(io.BytesIO(data))
    assert rdr.read_into_buf() == INIT_BUFFER_SIZE
    assert rdr.read_into_buf() == 5000 - INIT_BUFFER_SIZE
    assert rdr.capacity == INIT_BUFFER_SIZE * 4
    assert rdr.get_buf() == data


def test_buffer_stops_growing_at_limit():
    rdr = BufReader(io.BytesIO(b"z" * (MAX_BUFFER_SIZE + 1000)))
    while rdr.read_into_buf():
        pass
    assert rdr.capacity == MAX_BUFFER_SIZE
    assert len(rdr.get_buf()) == MAX_BUFFER_SIZE
    assert rdr.read_into_buf() == 0


def test_into_inner():
    inner = io.BytesIO(b"abc")
    rdr = BufReader(inner)
    assert rdr.into_inner() is inner