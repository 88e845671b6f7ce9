import math

from numba import njit

####

import kcode.transport.rng as rng

from kcode.constant import PI


# ======================================================================================
# Distribution samplers
#   All draw from the particle's own stream, ``rng_state``
# ======================================================================================


@njit
def sample_uniform(low, high, rng_state):
    xi = rng.lcg(rng_state)
    return low + xi * (high - low)


@njit
def sample_isotropic_direction(rng_state):
    mu = 2.0 * rng.lcg(rng_state) - 1.0
    phi = 2.0 * PI * rng.lcg(rng_state)
    sin_theta = math.sqrt(1.0 - mu * mu)
    return sin_theta * math.cos(phi), sin_theta * math.sin(phi), mu


@njit
def sample_discrete(cdf, rng_state):
    """
    Index i with cdf[i] <= xi < cdf[i+1]; ``cdf`` starts at 0 and its last
    entry is the total (not necessarily 1)
    """
    target = rng.lcg(rng_state) * cdf[-1]
    i = 0
    N = len(cdf) - 1
    while i < N - 1 and target >= cdf[i + 1]:
        i += 1
    return i


@njit
def sample_maxwellian(T, rng_state):
    # Exponential part plus the square of a normal deviate
    log_1 = math.log(rng.lcg(rng_state))
    log_2 = math.log(rng.lcg(rng_state))
    cos_2 = math.cos(0.5 * PI * rng.lcg(rng_state)) ** 2
    return -T * (log_1 + log_2 * cos_2)


@njit
def sample_watt(a, b, rng_state):
    """
    Watt fission spectrum, p(E) ~ exp(-E/a) sinh(sqrt(bE))
    """
    w = sample_maxwellian(a, rng_state)
    ab = a * a * b
    return w + 0.25 * ab + (2.0 * rng.lcg(rng_state) - 1.0) * math.sqrt(ab * w)
