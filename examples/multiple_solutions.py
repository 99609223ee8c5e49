import random
from collections import Counter

from tqdm import trange
from geffe import LFSR, search, verify_all, keystream

# tiny registers, to see how often more than one triple reproduces the output
L1 = (5, (2, 4))
L2 = (6, (4, 5))
L3 = (4, (2, 3))


def count_solutions(rand: random.Random, length: int) -> int:
    regs = [
        LFSR(n, taps, [rand.getrandbits(1) for _ in range(n)]) for n, taps in (L1, L2, L3)
    ]
    out = keystream(*regs, length)
    # accept everything, so only exact verification decides
    cands = [search(r, out, float("-inf"), processes=1) for r in regs]
    return sum(1 for _ in verify_all(*regs, *cands, out))


def multiple_solutions():
    rand = random.Random(3142)
    for length in (8, 16, 32, 64):
        counts = Counter(count_solutions(rand, length) for _ in trange(50, desc=f"{length = }"))
        print(f"{length = }: {sorted(counts.items())}")


if __name__ == "__main__":
    multiple_solutions()
