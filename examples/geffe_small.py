import os
import secrets
from time import perf_counter
from contextlib import contextmanager

from tqdm import tqdm
from geffe import LFSR, attack, format_bits, keystream

processes = int(os.environ.get("GEFFE_PROCESSES", "0")) or None

# primitive feedback: x^11 + x^2 + 1, x^13 + x^4 + x^3 + x + 1, x^9 + x^4 + 1
L1 = (11, (8, 10))
L2 = (13, (8, 9, 11, 12))
L3 = (9, (4, 8))


@contextmanager
def timeit(task_name):
    start = perf_counter()
    try:
        yield
    finally:
        end = perf_counter()
        print(f"{task_name} took {end - start:.2f} seconds")


def geffe_test(length: int):
    inits = [
        tuple(bool(secrets.randbits(1)) for _ in range(n))
        for n, _ in (L1, L2, L3)
    ]
    for init in inits:
        print(f"init = {format_bits(init)}")
    l1, l2, l3 = (LFSR(n, taps, init) for (n, taps), init in zip((L1, L2, L3), inits))
    out = keystream(l1, l2, l3, length)
    print(f"out = {format_bits(out)}")

    # l1 and l2 agree with the output 3/4 of the time, l3 only half of the time
    thresholds = (0.3 * length, 0.3 * length, float("-inf"))
    with timeit("attack"):
        res = attack(l1, l2, l3, out, thresholds, tqdm=tqdm, processes=processes)
    for i, s in enumerate(res.searches, 1):
        print(f"L{i}: {len(s)} candidates, {s.examined}/{s.total} states examined")
    assert res.found
    for state in res.solution:
        print(f"sol = {format_bits(state)}")
    for lfsr, state in zip((l1, l2, l3), res.solution):
        lfsr.set_state(state)
    assert keystream(l1, l2, l3, length) == out


if __name__ == "__main__":
    geffe_test(400)
