import kcode.transport.tally as tally_module

from kcode.constant import (
    COINCIDENCE_TOLERANCE,
    EVENT_COLLISION,
    EVENT_TRACK,
    INF,
    MAX_LOST_RETRY,
    MAX_ZERO_STEPS,
    STATE_ABSORBED,
    STATE_AT_BOUNDARY,
    STATE_COLLIDING,
    STATE_CUTOFF,
    STATE_ESCAPED,
    STATE_IN_FLIGHT,
    STATE_KILLED,
    TINY_BIT,
)
from kcode.error import LostParticleWarning, PhysicsSamplingError
from kcode.geometry.interface import (
    cross_lattice,
    cross_surface,
    distance_to_boundary,
    locate,
    update_material,
)
from kcode.transport.particle import SourceSite, describe_particle
from kcode.transport.technique import weight_roulette


# ======================================================================================
# Transport state machine
# ======================================================================================


def transport_one(particle, ctx, worker):
    """
    Transport a located particle until it reaches a terminal state.

    Each step samples a collision distance, finds the nearest boundary, moves
    by the shorter of the two, and then either collides or crosses. Fission
    sites go to ``worker.sites``; tally scores go to ``worker.tally_bins``.

    Returns
    -------
    int
        One of ``STATE_ABSORBED``, ``STATE_ESCAPED``, ``STATE_CUTOFF``,
        ``STATE_KILLED``.
    """
    particle.state = STATE_IN_FLIGHT
    try:
        _transport_loop(particle, ctx, worker)
    except PhysicsSamplingError as error:
        # Name the failing history
        error.particle_ID = particle.ID
        error.cell_ID = particle.cell_ID
        error.xyz = (float(particle.x), float(particle.y), float(particle.z))
        raise
    return particle.state


def _transport_loop(particle, ctx, worker):
    geometry = ctx.geometry
    sampler = ctx.sampler

    while particle.alive:
        d_collision = sampler.sample_distance(
            particle.material_ID, particle.E, particle.rng_state
        )
        boundary = distance_to_boundary(particle, geometry)

        # Collision
        if d_collision < boundary.distance:
            pre = particle.snapshot()
            particle.coord.move(d_collision)
            particle.surface_ID = -1
            particle.surface_level = -1
            particle.n_zero_step = 0
            _score(ctx, worker, pre, particle.snapshot(), EVENT_TRACK)

            particle.state = STATE_COLLIDING
            collide(particle, ctx, worker)
            continue

        # Nothing ahead: unbounded model
        if boundary.distance >= INF:
            _lost(particle, ctx, worker, "no boundary ahead in a void region")
            break

        # Move to the boundary
        pre = particle.snapshot()
        particle.coord.move(boundary.distance)
        _score(ctx, worker, pre, particle.snapshot(), EVENT_TRACK)

        if boundary.distance < COINCIDENCE_TOLERANCE:
            particle.n_zero_step += 1
            if particle.n_zero_step > MAX_ZERO_STEPS:
                _lost(particle, ctx, worker, "stuck on a boundary")
                break
        else:
            particle.n_zero_step = 0

        # Cross
        particle.state = STATE_AT_BOUNDARY
        if boundary.surface_ID >= 0:
            state = cross_surface(
                particle, geometry, boundary.level, boundary.surface_ID
            )
        else:
            state = cross_lattice(
                particle,
                geometry,
                boundary.level,
                boundary.lattice_axis,
                boundary.lattice_step,
            )

        if state == STATE_ESCAPED:
            particle.alive = False
            particle.state = STATE_ESCAPED
        elif state == STATE_KILLED:
            if not recover(particle, ctx, worker):
                break
            particle.state = STATE_IN_FLIGHT
        else:
            particle.state = STATE_IN_FLIGHT


def collide(particle, ctx, worker):
    # Last-collision snapshot
    particle.last_xyz = (particle.x, particle.y, particle.z)
    particle.last_w = particle.w
    particle.last_E = particle.E
    pre = particle.snapshot()

    outcome = ctx.sampler.sample_collision(
        particle.material_ID,
        particle.E,
        (particle.ux, particle.uy, particle.uz),
        particle.w,
        ctx.k_eff,
        particle.rng_state,
    )
    particle.n_collision += 1

    # Bank fission neutrons for the next cycle
    for site in outcome.sites:
        worker.sites.append(
            SourceSite(
                float(particle.x),
                float(particle.y),
                float(particle.z),
                site.ux,
                site.uy,
                site.uz,
                site.E,
                site.w,
                particle.ID,
                particle.n_bank,
            )
        )
        particle.n_bank += 1

    # Absorption
    if outcome.absorbed:
        particle.alive = False
        particle.state = STATE_ABSORBED
        _score(ctx, worker, pre, particle.snapshot(w=0.0), EVENT_COLLISION)
        return

    # Scattering
    particle.w *= outcome.weight_factor
    particle.E = outcome.E
    particle.coord.set_direction(outcome.ux, outcome.uy, outcome.uz)
    _score(ctx, worker, pre, particle.snapshot(), EVENT_COLLISION)

    # Weight roulette
    if not weight_roulette(particle, ctx.weight_roulette):
        particle.state = STATE_KILLED
        return

    # Energy cutoff
    if particle.E < ctx.settings.energy_cutoff:
        particle.alive = False
        particle.state = STATE_CUTOFF
        return

    particle.state = STATE_IN_FLIGHT


# ======================================================================================
# Lost particles
# ======================================================================================


def recover(particle, ctx, worker):
    """
    Nudge an unresolvable particle along its direction and locate it again,
    up to a bounded number of times; record it as lost if that fails.
    """
    coord = particle.coord
    particle.surface_ID = -1
    particle.surface_level = -1
    for _ in range(MAX_LOST_RETRY):
        coord.prune(0)
        coord.move(TINY_BIT)
        if locate(particle, ctx.geometry, 0):
            update_material(particle, ctx.geometry)
            return True
    _lost(particle, ctx, worker, "no cell found after crossing")
    return False


def _lost(particle, ctx, worker, reason):
    particle.alive = False
    particle.state = STATE_KILLED
    worker.lost.append(
        LostParticleWarning(
            particle.ID,
            particle.cell_ID,
            (float(particle.x), float(particle.y), float(particle.z)),
            reason,
            describe_particle(particle, ctx.geometry),
        )
    )


def _score(ctx, worker, pre, post, event):
    if len(ctx.tallies) > 0:
        tally_module.score(ctx.tallies, worker.tally_bins, pre, post, event)
