import numpy as np

####

from kcode.constant import (
    SOURCE_DIRECTION_ISO,
    SOURCE_ENERGY_MONO,
    SOURCE_POSITION_POINT,
)
from kcode.transport.distribution import (
    sample_discrete,
    sample_isotropic_direction,
    sample_uniform,
    sample_watt,
)
from kcode.transport.particle import SourceSite


def source_cdf(sources):
    return np.concatenate(([0.0], np.cumsum([source.probability for source in sources])))


def source_site(sources, cdf, rng_state, history):
    """
    Sample an external source site with the given stream.

    The source is picked by probability, then position, direction, and
    energy are drawn in that order.
    """
    if len(sources) == 1:
        source = sources[0]
    else:
        source = sources[sample_discrete(cdf, rng_state)]

    # Position
    if source.position_type == SOURCE_POSITION_POINT:
        x, y, z = source.point
    else:
        x = sample_uniform(source.x[0], source.x[1], rng_state)
        y = sample_uniform(source.y[0], source.y[1], rng_state)
        z = sample_uniform(source.z[0], source.z[1], rng_state)

    # Direction
    if source.direction_type == SOURCE_DIRECTION_ISO:
        ux, uy, uz = sample_isotropic_direction(rng_state)
    else:
        ux, uy, uz = source.direction

    # Energy
    if source.energy_type == SOURCE_ENERGY_MONO:
        E = source.energy
    else:
        E = sample_watt(source.watt_a, source.watt_b, rng_state)

    return SourceSite(
        float(x), float(y), float(z), float(ux), float(uy), float(uz), E, 1.0, history, 0
    )

