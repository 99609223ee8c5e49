from __future__ import annotations
from collections.abc import Iterable

# a register state or an output stream is packed into an int,
# position j of the state (or step j of the stream) is bit j


def to_bits(n: int, v: int) -> tuple[bool, ...]:
    return tuple(bool((v >> i) & 1) for i in range(n))


def from_bits(bits: Iterable) -> int:
    v = 0
    for i, b in enumerate(bits):
        if b not in (0, 1):
            raise ValueError(f"Not a bit: {b!r}")
        if b:
            v |= 1 << i
    return v


def lfsr_output(n: int, mask: int, state: int, steps: int) -> tuple[int, int]:
    """
    Run a register for `steps` steps, return (packed output, final state)
    """
    M = (1 << n) - 1
    out = 0
    for t in range(steps):
        bit = (state & mask).bit_count() & 1
        state = ((state << 1) | bit) & M
        out |= bit << t
    return out, state


def geffe_combine(x: int, y: int, s: int, length: int) -> int:
    return ((s & x) ^ (~s & y)) & ((1 << length) - 1)


def score(observed: int, generated: int, length: int) -> int:
    # agreements - disagreements
    return length - 2 * (observed ^ generated).bit_count()


def search_range(
    n: int,
    mask: int,
    observed: int,
    length: int,
    threshold: float,
    start: int,
    stop: int,
) -> tuple[list[int], int]:
    accepted = []
    for i in range(start, stop):
        out, _ = lfsr_output(n, mask, i, length)
        if score(observed, out, length) > threshold:
            accepted.append(i)
    return accepted, stop - start


# set once per pool worker by init_worker, read-only afterwards
_WORKER_ARGS: tuple | None = None


def init_worker(n: int, mask: int, observed: int, length: int, threshold: float):
    global _WORKER_ARGS
    _WORKER_ARGS = (n, mask, observed, length, threshold)


def search_chunk(bounds: tuple[int, int]) -> tuple[list[int], int]:
    start, stop = bounds
    return search_range(*_WORKER_ARGS, start, stop)
