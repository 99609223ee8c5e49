from .lfsr import LFSR


def geffe(l1: LFSR, l2: LFSR, l3: LFSR, steps: int) -> list[bool]:
    # l3 selects: l1 when it outputs 1, l2 otherwise
    out = []
    for _ in range(steps):
        x = l1()
        y = l2()
        s = l3()
        out.append((s and x) ^ (not s and y))
    return out


keystream = geffe


# registers and observed keystream of the lab variant
VARIANT = (
    (30, (0, 1, 4, 6)),
    (31, (0, 3)),
    (32, (0, 1, 2, 3, 5, 7)),
)

VARIANT_KEYSTREAM = (
    "1001011110111000001011110011110001100100101001001110010001101011"
    "1100101101100110100101111100001101110100011110101010110100100000"
    "0110001001111110100011010100111111100110011001001101110011000111"
    "0111001111100011110101101111110100110000101010111010010001011011"
    "1111110100011101000011110100010110001101000010001110001010000100"
    "1111011110111011011111000100010001111100101100011010110100010"
)


def variant_registers() -> tuple[LFSR, LFSR, LFSR]:
    l1, l2, l3 = (LFSR(n, taps) for n, taps in VARIANT)
    return l1, l2, l3
