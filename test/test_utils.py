import utils
from utils import ID_SPACE, dht_hash, is_responsible, ring_distance


def test_dht_hash_takes_leading_digest_bits():
    # sha256("") = e3b0c442..., sha256("abc") = ba7816bf...
    assert dht_hash("") == 0xe3b0
    assert dht_hash("abc") == 0xba78
    assert dht_hash(b"abc") == dht_hash("abc")


def test_dht_hash_range_and_consistency():
    for key in ("alpha", "beta", "/index.html", "ümlaut"):
        value = dht_hash(key)
        assert 0 <= value < ID_SPACE
        assert dht_hash(key) == value


def test_ring_distance_zero_iff_equal():
    for a in (0, 1, 100, ID_SPACE - 1):
        for b in (0, 1, 100, ID_SPACE - 1):
            assert (ring_distance(a, b) == 0) == (a == b)


def test_ring_distance_wraps_and_is_asymmetric():
    assert ring_distance(10, 20) == 10
    assert ring_distance(20, 10) == ID_SPACE - 10
    assert ring_distance(ID_SPACE - 1, 0) == 1
    assert ring_distance(ID_SPACE - 5, 5) == 10


def test_single_peer_ring_owns_every_id():
    for dht_id in (0, 1, 42, 4711, ID_SPACE - 1):
        assert is_responsible(7, 7, dht_id)


def test_is_responsible_half_open_arc():
    assert is_responsible(50, 100, 75)
    assert is_responsible(50, 100, 100)
    assert not is_responsible(50, 100, 50)
    assert not is_responsible(50, 100, 101)
    assert not is_responsible(50, 100, 20)


def test_is_responsible_across_wraparound():
    assert is_responsible(65000, 10, 65535)
    assert is_responsible(65000, 10, 0)
    assert is_responsible(65000, 10, 10)
    assert not is_responsible(65000, 10, 65000)
    assert not is_responsible(65000, 10, 11)


def test_time_ms_is_milliseconds(monkeypatch):
    monkeypatch.setattr(utils.time, "time", lambda: 12.3456)
    assert utils.time_ms() == 12346
