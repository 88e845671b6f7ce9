import kcode.transport.rng as rng


# ======================================================================================
# Weight Roulette
# ======================================================================================


def weight_roulette(particle, weight_roulette):
    """
    Play roulette on a low-weight particle; return False if it is killed.
    """
    if particle.w < weight_roulette.weight_threshold:
        w_target = weight_roulette.weight_target
        survival_probability = particle.w / w_target
        if rng.lcg(particle.rng_state) < survival_probability:
            particle.w = w_target
        else:
            particle.alive = False
            return False
    return True
