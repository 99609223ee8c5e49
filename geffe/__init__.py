from __future__ import annotations
from typing import Optional, Union
from collections.abc import Sequence
from dataclasses import dataclass
from itertools import product
from numbers import Real
import logging
import multiprocessing as mp
import time

from ._internal import (
    to_bits,
    from_bits,
    geffe_combine,
    score,
    search_range,
    search_chunk,
    init_worker,
)
from .crypto.lfsr import LFSR, simulate
from .crypto.geffe import geffe, keystream

_logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 3600  # seconds
DEFAULT_CHUNK_SIZE = 4096
DEFAULT_MAX_WIDTH = 32
DEFAULT_THRESHOLD_RATIO = 0.6

State = tuple[bool, ...]
Triple = tuple[State, State, State]


class WidthTooLargeError(Exception):
    def __init__(self, message: str, width: int, max_width: int):
        super().__init__(message)
        self.width = width
        self.max_width = max_width


@dataclass(frozen=True)
class SearchResult:
    """
    Candidate states accepted by `search`, together with how much of the
    state space was actually examined. If the search hit its timeout,
    `timed_out` is set and `candidates` only covers the examined part.
    """

    width: int
    candidates: frozenset[State]
    examined: int
    elapsed: float = 0.0

    @property
    def total(self) -> int:
        return 1 << self.width

    @property
    def timed_out(self) -> bool:
        return self.examined < self.total

    def __len__(self):
        return len(self.candidates)

    def __iter__(self):
        return iter(self.candidates)

    def __contains__(self, state):
        return tuple(state) in self.candidates


@dataclass(frozen=True)
class AttackResult:
    searches: tuple[SearchResult, SearchResult, SearchResult]
    solution: Optional[Triple]

    @property
    def found(self) -> bool:
        return self.solution is not None


def parse_bits(s: str) -> State:
    if not set(s) <= {"0", "1"}:
        raise ValueError(f"Not a bit string: {s!r}")
    return tuple(c == "1" for c in s)


def format_bits(bits: Sequence) -> str:
    return "".join("1" if b else "0" for b in bits)


def _pack(sequence: Sequence) -> tuple[int, int]:
    length = len(sequence)
    if length == 0:
        raise ValueError("The observed sequence is empty")
    return from_bits(sequence), length


def default_threshold(length: int, ratio: float = DEFAULT_THRESHOLD_RATIO) -> float:
    return ratio * length


def correlation(observed: Sequence, candidate: Sequence) -> int:
    """
    Number of positions where the sequences agree minus the number of
    positions where they differ, so it lies in [-len, len]
    """
    if len(observed) != len(candidate):
        raise ValueError(
            f"Cannot correlate sequences of different lengths ({len(observed)} != {len(candidate)})"
        )
    return score(from_bits(observed), from_bits(candidate), len(observed))


def search(
    lfsr: LFSR,
    sequence: Sequence,
    threshold: float,
    *,
    processes: Optional[int] = None,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_width: int = DEFAULT_MAX_WIDTH,
    tqdm=lambda x, desc, total=None: x,
) -> SearchResult:
    """
    Try every initial state of `lfsr` and keep those whose output over
    len(sequence) steps has a correlation with `sequence` strictly above
    `threshold`. State i has bit j of i at position j.

    This runs 2**n simulations of len(sequence) steps each. In pure python
    a simulation step costs in the order of 0.2us, so a 20-bit register with
    a 400-bit sequence is a few minutes of cpu time, and every extra bit of
    width doubles it. Registers wider than `max_width` are refused.

    `lfsr` only provides the width and taps, its state is left untouched.
    """
    observed, length = _pack(sequence)
    n = lfsr.n
    if n > max_width:
        raise WidthTooLargeError(
            f"Register width {n} means 2**{n} simulations, try increase max_width ({max_width}) if you want",
            width=n,
            max_width=max_width,
        )
    if chunk_size < 1:
        raise ValueError(f"Invalid chunk size {chunk_size}")
    if processes is None:
        processes = mp.cpu_count()
    if processes < 1:
        raise ValueError(f"Invalid number of processes {processes}")

    total = 1 << n
    ranges = [(i, min(i + chunk_size, total)) for i in range(0, total, chunk_size)]
    processes = min(processes, len(ranges))
    desc = f"Searching {n}-bit register"

    accepted: list[int] = []
    examined = 0
    start = time.monotonic()
    deadline = None if timeout is None else start + timeout

    if processes == 1:
        for lo, hi in tqdm(ranges, desc=desc, total=len(ranges)):
            if deadline is not None and time.monotonic() >= deadline:
                break
            hits, count = search_range(n, lfsr.mask, observed, length, threshold, lo, hi)
            accepted.extend(hits)
            examined += count
    else:
        with mp.Pool(
            processes=processes,
            initializer=init_worker,
            initargs=(n, lfsr.mask, observed, length, threshold),
        ) as pool:
            # chunk results are merged as they arrive, leaving the pool terminates the rest
            it = pool.imap_unordered(search_chunk, ranges, chunksize=1)
            for _ in tqdm(range(len(ranges)), desc=desc, total=len(ranges)):
                wait = None if deadline is None else max(0.0, deadline - time.monotonic())
                try:
                    hits, count = it.next(timeout=wait)
                except mp.TimeoutError:
                    break
                accepted.extend(hits)
                examined += count
                _logger.debug("merged chunk: %d states, %d accepted", count, len(hits))

    result = SearchResult(
        width=n,
        candidates=frozenset(to_bits(n, i) for i in accepted),
        examined=examined,
        elapsed=time.monotonic() - start,
    )
    if result.timed_out:
        _logger.warning(
            "search of %d-bit register timed out after %.1fs, %d/%d states examined",
            n,
            result.elapsed,
            examined,
            total,
        )
    _logger.info(
        "search of %d-bit register: %d candidates above %s in %.2fs",
        n,
        len(result),
        threshold,
        result.elapsed,
    )
    return result


def verify_all(
    l1: LFSR,
    l2: LFSR,
    l3: LFSR,
    candidates1,
    candidates2,
    candidates3,
    sequence: Sequence,
    tqdm=lambda x, desc, total=None: x,
):
    """
    Yield every triple of candidate states whose Geffe output reproduces
    `sequence` exactly. The order is fixed: l1 outermost, l3 innermost, each
    candidate set sorted by the integer encoding of its states.
    """
    observed, length = _pack(sequence)
    if not (candidates1 and candidates2 and candidates3):
        return

    streams = []
    for lfsr, candidates in ((l1, candidates1), (l2, candidates2), (l3, candidates3)):
        probe = lfsr.copy()
        cur = []
        for state in sorted(candidates, key=from_bits):
            probe.set_state(state)
            cur.append((tuple(state), probe.run_packed(length)))
        streams.append(cur)

    total = len(streams[0]) * len(streams[1]) * len(streams[2])
    for (s1, x), (s2, y), (s3, s) in tqdm(
        product(*streams), desc="Verifying", total=total
    ):
        if geffe_combine(x, y, s, length) == observed:
            yield s1, s2, s3


def verify(
    l1: LFSR,
    l2: LFSR,
    l3: LFSR,
    candidates1,
    candidates2,
    candidates3,
    sequence: Sequence,
    tqdm=lambda x, desc, total=None: x,
) -> Optional[Triple]:
    for triple in verify_all(
        l1, l2, l3, candidates1, candidates2, candidates3, sequence, tqdm=tqdm
    ):
        _logger.info("found matching initial fills")
        return triple
    _logger.info("no matching initial fills")
    return None


def _thresholds(threshold, length: int) -> tuple[float, float, float]:
    if threshold is None:
        threshold = default_threshold(length)
    if isinstance(threshold, Real):
        return (threshold,) * 3
    threshold = tuple(threshold)
    if len(threshold) != 3:
        raise ValueError(f"Expected one threshold per register, got {len(threshold)}")
    return threshold


def attack(
    l1: LFSR,
    l2: LFSR,
    l3: LFSR,
    sequence: Sequence,
    threshold: Union[None, float, Sequence[float]] = None,
    tqdm=lambda x, desc, total=None: x,
    **options,
) -> AttackResult:
    """
    Full correlation attack: search each register on its own, then look for
    a triple of candidates reproducing `sequence`.

    The selector l3 agrees with the output only half of the time, so it
    usually needs its own threshold, e.g. threshold=(0.3 * L, 0.3 * L, float("-inf")).
    """
    _pack(sequence)
    thresholds = _thresholds(threshold, len(sequence))
    searches = tuple(
        search(lfsr, sequence, c, tqdm=tqdm, **options)
        for lfsr, c in zip((l1, l2, l3), thresholds)
    )
    solution = verify(l1, l2, l3, *searches, sequence, tqdm=tqdm)
    return AttackResult(searches, solution)
