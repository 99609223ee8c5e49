import logging
import os

from tqdm import tqdm
from geffe import attack, default_threshold, format_bits, parse_bits
from geffe.crypto.geffe import VARIANT_KEYSTREAM, variant_registers

processes = int(os.environ.get("GEFFE_PROCESSES", "0")) or None


def variant_attack():
    # warning: 2**30 + 2**31 + 2**32 simulations, this takes days in pure python
    logging.basicConfig(level=logging.INFO)
    l1, l2, l3 = variant_registers()
    out = parse_bits(VARIANT_KEYSTREAM)
    print(f"{len(out) = }")

    C = default_threshold(len(out))
    res = attack(l1, l2, l3, out, C, tqdm=tqdm, processes=processes)

    for i, s in enumerate(res.searches, 1):
        print(f"Candidates for the initial fill of L{i}:")
        for state in sorted(s.candidates):
            print(format_bits(state))
        if s.timed_out:
            print(f"(timed out, only {s.examined}/{s.total} states examined)")

    if res.found:
        print("Found correct initial fills for L1, L2, and L3.")
        for state in res.solution:
            print(format_bits(state))
    else:
        print("No correct initial fills found for L1, L2, and L3.")


if __name__ == "__main__":
    variant_attack()
