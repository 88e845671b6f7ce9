import numpy as np

from numba import uint64, njit

# ======================================================================================
# Random number streams
#   63-bit LCG; independent streams are keyed off a seed by a 64-bit hash
# ======================================================================================

LCG_MULTIPLIER = uint64(2806196910506780709)
LCG_INCREMENT = uint64(1)
LCG_MASK = uint64(0x7FFFFFFFFFFFFFFF)
LCG_PERIOD = uint64(0x8000000000000000)

HASH_MULTIPLIER = uint64(0xC6A4A7935BD1E995)
HASH_SHIFT = uint64(47)

# Key of the bank-combing stream of a cycle
SEED_SPLIT_BANK = uint64(0x42616E6B)


@njit
def _scramble(value):
    value ^= value >> HASH_SHIFT
    return value * HASH_MULTIPLIER


@njit
def split_seed(key, seed):
    """
    Derive the seed of an independent stream from ``seed`` and an integer
    ``key`` (MurmurHash64A of a single 8-byte block).

    A cycle seed is split from the run seed by the cycle index, and a history
    seed from the cycle seed by the global history index.
    """
    key = uint64(key) * HASH_MULTIPLIER
    key = _scramble(key)

    digest = uint64(seed) ^ (uint64(8) * HASH_MULTIPLIER)
    digest ^= key
    digest *= HASH_MULTIPLIER

    digest = _scramble(digest)
    return digest ^ (digest >> HASH_SHIFT)


@njit
def advance(seed):
    return (LCG_MULTIPLIER * uint64(seed) + LCG_INCREMENT) & LCG_MASK


@njit
def lcg(rng_state):
    """
    Advance the stream held in ``rng_state[0]``; returns a number in [0, 1).
    """
    rng_state[0] = advance(rng_state[0])
    return rng_state[0] / LCG_PERIOD


def make_state(seed):
    rng_state = np.zeros(1, dtype=np.uint64)
    rng_state[0] = seed
    return rng_state
