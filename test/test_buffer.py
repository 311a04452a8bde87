# test/test_buffer.py
import numpy as np
import pytest

from fast5vcd.core import SampleBuffer


def test_append_keeps_previous_values_across_growth():
    buf = SampleBuffer(np.int16)
    expected = []
    for i in range(50):
        run = np.arange(i * 100, i * 100 + 100) % 30000
        buf.append(run)
        expected.append(run)

    np.testing.assert_array_equal(buf.view(), np.concatenate(expected).astype(np.int16))
    assert len(buf) == 5000


def test_capacity_grows_geometrically():
    buf = SampleBuffer(np.int16)
    capacities = set()
    for _ in range(10000):
        buf.append([1])
        capacities.add(buf.capacity)

    # 1024, 2048, 4096, 8192, 16384
    assert len(capacities) == 5
    assert buf.capacity >= len(buf)


def test_empty_append_is_noop():
    buf = SampleBuffer(np.int16)
    buf.append([])
    assert len(buf) == 0
    assert buf.capacity == 0


def test_view_is_read_only():
    buf = SampleBuffer(np.float64)
    buf.append([1.0, 2.0])
    view = buf.view()
    with pytest.raises(ValueError):
        view[0] = 3.0


def test_rejects_cross_kind_cast():
    buf = SampleBuffer(np.int16)
    with pytest.raises(TypeError):
        buf.append(np.array([1.5, 2.5]))


def test_rejects_non_1d():
    buf = SampleBuffer(np.int16)
    with pytest.raises(ValueError):
        buf.append(np.zeros((2, 2), dtype=np.int16))


def test_release_empties_buffer():
    buf = SampleBuffer(np.int16)
    buf.append([1, 2, 3])
    buf.release()
    assert len(buf) == 0
    assert buf.capacity == 0


def test_integer_lists_fill_unsigned_and_bool_buffers():
    u8 = SampleBuffer(np.uint8)
    u8.append([1, 0, 255])
    np.testing.assert_array_equal(u8.view(), np.array([1, 0, 255], dtype=np.uint8))

    flags = SampleBuffer(np.bool_)
    flags.append([1, 0, 0])
    np.testing.assert_array_equal(flags.view(), [True, False, False])


@pytest.mark.parametrize(
    "dtype, values",
    [(np.int16, [70000, -40000]), (np.uint8, [-1]), (np.bool_, [0, 2])],
)
def test_rejects_out_of_range_integers(dtype, values):
    buf = SampleBuffer(dtype)
    with pytest.raises(ValueError):
        buf.append(values)
    assert len(buf) == 0
