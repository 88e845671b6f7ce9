import math
import numpy as np

from mpi4py import MPI

####

from kcode.constant import (
    GYRATION_RADIUS_ALL,
    GYRATION_RADIUS_INFINITE_X,
    GYRATION_RADIUS_INFINITE_Y,
    GYRATION_RADIUS_INFINITE_Z,
)


# ======================================================================================
# Scoring
# ======================================================================================


def make_bins(tallies):
    return [np.zeros(tally.shape) for tally in tallies]


def score(tallies, bins, pre, post, event):
    for tally, tally_bins in zip(tallies, bins):
        tally.score(pre, post, event, tally_bins)


# ======================================================================================
# Reduce tally bins
# ======================================================================================


def reduce(ctx):
    """
    Sum the worker bins (in worker order), normalize per source particle,
    and combine over MPI ranks into ``ctx.tally_cycle``.
    """
    N_particle = ctx.settings.N_particle
    for i in range(len(ctx.tallies)):
        local = np.zeros(ctx.tallies[i].shape)
        for worker in ctx.workers:
            local += worker.tally_bins[i]
            worker.tally_bins[i][...] = 0.0

        # Normalize
        local /= N_particle

        # MPI Allreduce
        buff = np.zeros_like(local)
        ctx.comm.Allreduce(local, buff, MPI.SUM)
        ctx.tally_cycle[i][...] = buff


# ======================================================================================
# Accumulate tally bins
# ======================================================================================


def accumulate(ctx):
    for tally, score_ in zip(ctx.tallies, ctx.tally_cycle):
        tally.bin_sum += score_
        tally.bin_sum_square += score_ * score_
        score_[...] = 0.0


# ======================================================================================
# Finalize
# ======================================================================================


def finalize(ctx):
    """
    Mean and standard deviation of the mean over active cycles
    """
    N = ctx.settings.N_active
    for tally in ctx.tallies:
        tally.mean = tally.bin_sum / N
        if N > 1:
            radicand = (tally.bin_sum_square / N - np.square(tally.mean)) / (N - 1)
            # Round-off can leave tiny negative values
            radicand[radicand < 0.0] = 0.0
            tally.sdev = np.sqrt(radicand)
        else:
            tally.sdev = np.zeros_like(tally.mean)


def reset_sum_bins(ctx):
    for tally in ctx.tallies:
        tally.bin_sum[...] = 0.0
        tally.bin_sum_square[...] = 0.0


# ======================================================================================
# Eigenvalue
# ======================================================================================


def eigenvalue_cycle(ctx, W_sites, W_source):
    """
    Update k with the generation ratio and its running statistics.
    """
    idx_cycle = ctx.idx_cycle

    ctx.k_eff = ctx.k_eff * W_sites / W_source
    ctx.k_cycle[idx_cycle] = ctx.k_eff

    # Accumulate running average
    if ctx.cycle_active:
        ctx.k_avg += ctx.k_eff
        ctx.k_sdv += ctx.k_eff * ctx.k_eff

        N = 1 + idx_cycle - ctx.settings.N_inactive
        ctx.k_avg_running = ctx.k_avg / N
        if N == 1:
            ctx.k_sdv_running = 0.0
        else:
            radicand = (ctx.k_sdv / N - ctx.k_avg_running**2) / (N - 1)
            ctx.k_sdv_running = math.sqrt(max(radicand, 0.0))


def gyration_radius(ctx, bank):
    """
    Weighted RMS distance of the sites from their center of mass; the
    infinite axis, if any, is left out.
    """
    # Center of mass
    total_local = np.array(
        [
            np.sum(bank["x"] * bank["w"]),
            np.sum(bank["y"] * bank["w"]),
            np.sum(bank["z"] * bank["w"]),
            np.sum(bank["w"]),
        ]
    )
    total = np.zeros(4)
    ctx.comm.Allreduce(total_local, total, MPI.SUM)
    W = total[3]
    if W == 0.0:
        return 0.0
    com_x = total[0] / W
    com_y = total[1] / W
    com_z = total[2] / W

    # Distance RMS
    gr_type = ctx.settings.gyration_radius_type
    dx2 = (bank["x"] - com_x) ** 2
    dy2 = (bank["y"] - com_y) ** 2
    dz2 = (bank["z"] - com_z) ** 2
    if gr_type == GYRATION_RADIUS_ALL:
        distance2 = dx2 + dy2 + dz2
    elif gr_type == GYRATION_RADIUS_INFINITE_X:
        distance2 = dy2 + dz2
    elif gr_type == GYRATION_RADIUS_INFINITE_Y:
        distance2 = dx2 + dz2
    elif gr_type == GYRATION_RADIUS_INFINITE_Z:
        distance2 = dx2 + dy2
    rms_local = np.array([np.sum(bank["w"] * distance2)])
    rms = np.zeros(1)
    ctx.comm.Allreduce(rms_local, rms, MPI.SUM)
    return math.sqrt(rms[0] / W)
