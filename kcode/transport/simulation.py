import numpy as np

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from mpi4py import MPI
from numba import uint64

####

import kcode.transport.mpi as mpi
import kcode.transport.particle_bank as particle_bank_module
import kcode.transport.rng as rng
import kcode.transport.tally as tally_module

from kcode.error import GeometryError
from kcode.geometry.interface import find_cell, set_coordinate
from kcode.print_ import print_progress_eigenvalue
from kcode.transport.kernel import transport_one
from kcode.transport.particle import Particle, get_site, make_bank
from kcode.transport.source import source_cdf, source_site


# ======================================================================================
# Contexts
# ======================================================================================


class WorkerContext:
    """
    Private state of one in-process worker: its tally bins, the fission sites
    it banked, lost-particle records, and a reusable particle.
    """

    def __init__(self, index, tallies):
        self.index = index
        self.particle = Particle()
        self.tally_bins = tally_module.make_bins(tallies)
        self.sites = []
        self.lost = []
        self.n_history = 0

    def reset_cycle(self):
        self.sites = []
        self.n_history = 0


class RunContext:
    """
    Run-wide state: read-only model data shared by the workers, plus the
    cycle state that only changes between cycles.
    """

    def __init__(self, settings, geometry, sampler, sources, tallies, weight_roulette):
        # Read-only model
        self.settings = settings
        self.geometry = geometry
        self.sampler = sampler
        self.sources = sources
        self.source_cdf = source_cdf(sources)
        self.tallies = tallies
        self.weight_roulette = weight_roulette

        # MPI
        self.comm = MPI.COMM_WORLD
        self.rank = self.comm.Get_rank()
        self.size = self.comm.Get_size()
        self.master = self.rank == 0

        # Workers
        self.workers = [
            WorkerContext(i, tallies) for i in range(max(settings.N_worker, 1))
        ]

        # Cycle state
        N_cycle = settings.N_cycle
        self.idx_cycle = 0
        self.cycle_active = False
        self.k_eff = settings.k_init
        self.k_cycle = np.zeros(N_cycle)
        self.k_avg = 0.0
        self.k_sdv = 0.0
        self.k_avg_running = 0.0
        self.k_sdv_running = 0.0
        self.gyration_radius = np.zeros(N_cycle)
        self.tally_cycle = tally_module.make_bins(tallies)
        self.n_lost = 0

        # Local source bank (None: sample the external source)
        self.bank = None

        self.runtime = {
            "preparation": 0.0,
            "inactive": 0.0,
            "active": 0.0,
            "bank_sampling": 0.0,
            "bank_exchange": 0.0,
            "tally_closeout": 0.0,
            "output": 0.0,
            "total": 0.0,
        }

    @property
    def lost_records(self):
        return [record for worker in self.workers for record in worker.lost]

    def make_particle(self, site, history, seed, particle=None):
        """
        Set up a particle for history ``history`` with stream ``seed``.

        If ``site`` is None the site is sampled from the external sources with
        the particle's own stream. The particle is located in the geometry; a
        birth point outside every cell is a ``GeometryError``.
        """
        if particle is None:
            particle = Particle()
        particle.reset(history, seed)
        if site is None:
            site = source_site(self.sources, self.source_cdf, particle.rng_state, history)

        particle.E = site.E
        particle.w = site.w
        set_coordinate(particle, (site.x, site.y, site.z), (site.ux, site.uy, site.uz))
        find_cell(particle, self.geometry)
        particle.cell_born = particle.cell_ID
        return particle


@dataclass
class RunResult:
    k_eff: float
    k_std: float
    k_cycle: np.ndarray
    tallies: dict = field(default_factory=dict)
    n_lost: int = 0
    runtime: dict = field(default_factory=dict)
    gyration_radius: np.ndarray = None


# ======================================================================================
# Eigenvalue simulation
# ======================================================================================


def eigenvalue_simulation(ctx):
    settings = ctx.settings
    N_inactive = settings.N_inactive
    N_cycle = settings.N_cycle
    N_particle = settings.N_particle
    runtime = ctx.runtime

    # Distribute work
    work_start, work_size = mpi.distribute_work(N_particle, ctx.size, ctx.rank)

    # Fresh accumulators
    tally_module.reset_sum_bins(ctx)

    # Loop over power iteration cycles
    for idx_cycle in range(N_cycle):
        ctx.idx_cycle = idx_cycle
        ctx.cycle_active = idx_cycle >= N_inactive
        seed_cycle = uint64(
            rng.split_seed(uint64(idx_cycle), uint64(settings.rng_seed))
        )
        time_start = MPI.Wtime()

        # Loop over source particles
        loop_source(ctx, work_start, work_size, seed_cycle)

        # Lost particles
        n_lost_local = sum(len(worker.lost) for worker in ctx.workers)
        ctx.n_lost = ctx.comm.allreduce(n_lost_local, MPI.SUM)
        if ctx.n_lost > settings.max_lost_particles:
            record = ctx.lost_records[0] if n_lost_local > 0 else None
            raise GeometryError(
                f"{ctx.n_lost} particles lost, more than the allowed "
                f"{settings.max_lost_particles}",
                particle_ID=-1 if record is None else record.particle_ID,
                cell_ID=-1 if record is None else record.cell_ID,
                xyz=None if record is None else record.xyz,
            )

        # Tally closeout
        time_tally = MPI.Wtime()
        tally_module.reduce(ctx)
        if ctx.cycle_active:
            tally_module.accumulate(ctx)
        else:
            for score in ctx.tally_cycle:
                score[...] = 0.0

        # Generation weights, summed in global bank order
        sites = [site for worker in ctx.workers for site in worker.sites]
        bank = particle_bank_module.sort_bank(make_bank(sites))
        W_sites = particle_bank_module.total_weight(bank, ctx.comm)
        if ctx.bank is None:
            W_source = float(N_particle)
        else:
            W_source = particle_bank_module.total_weight(ctx.bank, ctx.comm)
        tally_module.eigenvalue_cycle(ctx, W_sites, W_source)
        runtime["tally_closeout"] += MPI.Wtime() - time_tally

        # Bank sampling
        time_bank = MPI.Wtime()
        if settings.use_gyration_radius:
            ctx.gyration_radius[idx_cycle] = tally_module.gyration_radius(ctx, bank)
        combed, tooth_idx = particle_bank_module.comb_bank(
            bank, N_particle, seed_cycle, ctx.comm
        )
        time_exchange = MPI.Wtime()
        runtime["bank_sampling"] += time_exchange - time_bank

        # Bank exchange
        ctx.bank = particle_bank_module.rebalance_and_verify(
            combed, tooth_idx, N_particle, ctx.comm
        )
        runtime["bank_exchange"] += MPI.Wtime() - time_exchange

        # Cycle time
        if ctx.cycle_active:
            runtime["active"] += MPI.Wtime() - time_start
        else:
            runtime["inactive"] += MPI.Wtime() - time_start

        # Print progress
        if settings.use_progress_bar:
            print_progress_eigenvalue(ctx)

    # Tally closeout
    time_tally = MPI.Wtime()
    tally_module.finalize(ctx)
    runtime["tally_closeout"] += MPI.Wtime() - time_tally


# ======================================================================================
# Source loop
# ======================================================================================


def loop_source(ctx, work_start, work_size, seed_cycle):
    """
    Run the local histories of a cycle, split contiguously over the workers.
    """
    for worker in ctx.workers:
        worker.reset_cycle()

    N_worker = len(ctx.workers)
    if N_worker == 1:
        run_histories(ctx, ctx.workers[0], work_start, 0, work_size, seed_cycle)
        return

    with ThreadPoolExecutor(max_workers=N_worker) as executor:
        futures = []
        for worker in ctx.workers:
            start, size = mpi.distribute_work(work_size, N_worker, worker.index)
            futures.append(
                executor.submit(
                    run_histories, ctx, worker, work_start, start, size, seed_cycle
                )
            )
        # Propagate worker errors
        for future in futures:
            future.result()


def run_histories(ctx, worker, work_start, start, size, seed_cycle):
    particle = worker.particle
    for idx_work in range(start, start + size):
        history = work_start + idx_work
        seed = rng.split_seed(uint64(history), seed_cycle)

        # Cycle source
        site = None
        if ctx.bank is not None:
            site = get_site(ctx.bank, idx_work)

        ctx.make_particle(site, history, seed, particle)
        transport_one(particle, ctx, worker)
        worker.n_history += 1
