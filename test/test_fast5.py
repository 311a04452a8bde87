# test/test_fast5.py
import logging

import numpy as np
import pytest

from fast5vcd.core import ContainerError, GroupNotFound, NotAFast5File
from fast5vcd.io.fast5 import Fast5File, open_fast5

from conftest import EVENT_ATTRS, EVENTS, RAW_ATTRS, SIGNAL


def test_open_decodes_file_info(fast5_path):
    with open_fast5(fast5_path) as f5:
        assert f5.info.filename == "read.fast5"
        assert str(f5.info.version) == "1.10"


def test_records_are_decoded_and_cached(fast5_path):
    with Fast5File(fast5_path) as f5:
        assert f5.channel_id is f5.channel_id
        assert f5.raw_info is f5.raw_info
        assert f5.raw_info.sample_count == SIGNAL.size
        assert f5.events_info.event_count == EVENTS.size


def test_bulk_reads(fast5_path):
    with Fast5File(fast5_path) as f5:
        np.testing.assert_array_equal(f5.read_raw(), SIGNAL)
        np.testing.assert_array_equal(f5.read_raw(1, 2), SIGNAL[1:3])
        np.testing.assert_array_equal(f5.read_events(), EVENTS)


def test_raw_picoamps(fast5_path):
    with Fast5File(fast5_path) as f5:
        pa = f5.raw_picoamps()
    expected = (SIGNAL.astype(np.float64) + 6.0) * 1467.61 / 8192.0
    np.testing.assert_allclose(pa, expected)


def test_absent_reads_are_none(make_fast5):
    with Fast5File(make_fast5(raw_reads=None, analyses=None)) as f5:
        assert f5.raw_info is None
        assert f5.events_info is None
        with pytest.raises(GroupNotFound):
            f5.read_raw()
        with pytest.raises(GroupNotFound):
            f5.read_events()
        # calibration is still available
        assert f5.channel_id.sampling_rate == 4000.0


def test_absent_raw_does_not_affect_events(make_fast5):
    with Fast5File(make_fast5(raw_reads={})) as f5:
        assert f5.raw_info is None
        assert f5.events_info is not None
        assert f5.read_events().size == EVENTS.size


def test_event_analysis_scan(make_fast5):
    path = make_fast5(analyses={"EventDetection_003": {"Read_812": (EVENT_ATTRS, EVENTS)}})
    with Fast5File(path) as f5:
        assert f5.events_info is None
    with Fast5File(path, analysis=None) as f5:
        assert f5.events_info.analysis == "EventDetection_003"


def test_not_a_fast5_file(make_fast5):
    with pytest.raises(NotAFast5File):
        Fast5File(make_fast5(global_key=False))


def test_open_failure(tmp_path):
    with pytest.raises(ContainerError):
        Fast5File(tmp_path / "missing.fast5")


def test_session_logger_receives_decode_warnings(make_fast5, caplog):
    attrs = {k: v for k, v in RAW_ATTRS.items() if k != "read_id"}
    log = logging.getLogger("session.a")
    with Fast5File(make_fast5(raw_reads={"Read_1": (attrs, SIGNAL)}), logger=log) as f5:
        with caplog.at_level(logging.WARNING, logger="session.a"):
            assert f5.raw_info.read_id == ""

    assert [r.name for r in caplog.records] == ["session.a"]
    assert "read_id" in caplog.text
