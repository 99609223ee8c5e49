import itertools
import pytest

from geffe import LFSR, correlation, default_threshold, format_bits, geffe, parse_bits
from geffe.crypto.geffe import VARIANT, VARIANT_KEYSTREAM, variant_registers


def test_geffe_selection_rule():
    l1 = LFSR(5, {2, 4}, [True, False, True, True, False])
    l2 = LFSR(6, {4, 5}, [False, True, True, False, False, True])
    l3 = LFSR(4, {2, 3}, [True, True, False, False])
    xs = LFSR(5, {2, 4}, l1.state).run(40)
    ys = LFSR(6, {4, 5}, l2.state).run(40)
    ss = LFSR(4, {2, 3}, l3.state).run(40)
    out = geffe(l1, l2, l3, 40)
    assert out == [x if s else y for x, y, s in zip(xs, ys, ss)]


def test_geffe_truth_table():
    # a 1-bit register tapping itself outputs its bit forever
    for x, y, s in itertools.product([False, True], repeat=3):
        regs = [LFSR(1, {0} if b else set(), [b]) for b in (x, y, s)]
        assert geffe(*regs, 1) == [(s and x) ^ (not s and y)]


def test_geffe_advances_registers():
    regs = [LFSR(3, {0, 2}, [True, False, False]) for _ in range(3)]
    geffe(*regs, 4)
    expected = LFSR(3, {0, 2}, [True, False, False])
    expected.run(4)
    assert all(r.state == expected.state for r in regs)


def test_correlation_self_and_complement():
    seq = parse_bits("1001011110111000001011")
    assert correlation(seq, seq) == len(seq)
    assert correlation(seq, [not b for b in seq]) == -len(seq)


def test_correlation_counts():
    assert correlation([1, 1, 0, 0], [1, 0, 0, 1]) == 0
    assert correlation([1, 1, 0, 0, 1], [1, 1, 0, 1, 1]) == 3


def test_correlation_length_mismatch():
    with pytest.raises(ValueError):
        correlation([1, 0, 1], [1, 0])


def test_default_threshold():
    assert default_threshold(100) == pytest.approx(60)
    assert default_threshold(100, 0.25) == pytest.approx(25)


def test_bit_strings():
    assert parse_bits("0110") == (False, True, True, False)
    assert format_bits([0, 1, True, False]) == "0110"
    with pytest.raises(ValueError):
        parse_bits("01a0")


def test_variant_registers():
    l1, l2, l3 = variant_registers()
    assert [(r.n, r.taps) for r in (l1, l2, l3)] == [(n, frozenset(t)) for n, t in VARIANT]
    assert l1.taps == {0, 1, 4, 6}
    assert l3.state == (False,) * 32
    assert len(parse_bits(VARIANT_KEYSTREAM)) == 381
