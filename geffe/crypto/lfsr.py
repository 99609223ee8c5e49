from __future__ import annotations
from collections.abc import Iterable, Sequence
from .._internal import to_bits, from_bits, lfsr_output


def tap_mask(n: int, taps: Iterable[int]) -> int:
    mask = 0
    for t in taps:
        if not 0 <= t < n:
            raise ValueError(f"Tap {t} is out of range for a {n}-bit register")
        mask |= 1 << t
    return mask


def _check_state(n: int, state: Sequence) -> int:
    if len(state) != n:
        raise ValueError(f"State has {len(state)} bits, expected {n}")
    return from_bits(state)


class LFSR:
    """
    Fibonacci style register: the feedback bit is the xor of the tapped
    positions, it is shifted in at position 0 and is also the output bit.
    """

    def __init__(self, n: int, taps: Iterable[int], state: Sequence | None = None):
        if n < 1:
            raise ValueError(f"Invalid register width {n}")
        self.n = n
        self.taps = frozenset(taps)
        self.mask = tap_mask(n, self.taps)
        self._state = 0
        if state is not None:
            self.set_state(state)

    def __repr__(self):
        return f"LFSR(n={self.n}, taps={sorted(self.taps)}, state={self._state:0{self.n}b})"

    def __copy__(self):
        other = LFSR(self.n, self.taps)
        other._state = self._state
        return other

    copy = __copy__

    @property
    def state(self) -> tuple[bool, ...]:
        return to_bits(self.n, self._state)

    @state.setter
    def state(self, new_state: Sequence):
        self.set_state(new_state)

    def set_state(self, new_state: Sequence):
        self._state = _check_state(self.n, new_state)

    def step(self) -> bool:
        bit = (self._state & self.mask).bit_count() & 1
        self._state = ((self._state << 1) | bit) & ((1 << self.n) - 1)
        return bool(bit)

    __call__ = step

    def run(self, steps: int) -> list[bool]:
        return [self.step() for _ in range(steps)]

    def run_packed(self, steps: int) -> int:
        """
        Same as run, but the outputs are packed into an int (step t is bit t)
        """
        out, self._state = lfsr_output(self.n, self.mask, self._state, steps)
        return out


def simulate(n: int, taps: Iterable[int], state: Sequence, steps: int) -> list[bool]:
    """
    Stateless version of LFSR(n, taps, state).run(steps)
    """
    if n < 1:
        raise ValueError(f"Invalid register width {n}")
    out, _ = lfsr_output(n, tap_mask(n, taps), _check_state(n, state), steps)
    return list(to_bits(steps, out))
