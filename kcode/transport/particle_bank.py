import numpy as np

from mpi4py import MPI

####

import kcode.transport.mpi as mpi
import kcode.transport.rng as rng

from kcode.error import BankError
from kcode.transport.particle import make_bank, site_dtype


# =============================================================================
# Local bank operations
# =============================================================================


def sort_bank(bank):
    """Order sites by (history, sequence)."""
    order = np.lexsort((bank["sequence"], bank["history"]))
    return bank[order]


def bank_scanning(bank, comm):
    """
    Global position of the local bank.

    Returns the global index of the first local site, the local size, and the
    global size.
    """
    N_local = len(bank)

    # Starting index
    buff = np.zeros(1, dtype=np.int64)
    comm.Exscan(np.array([N_local], dtype=np.int64), buff, MPI.SUM)
    if comm.Get_rank() == 0:
        buff[0] = 0
    idx_start = int(buff[0])

    # Global size
    N_global = comm.allreduce(N_local, MPI.SUM)

    return idx_start, N_local, N_global


def global_weights(bank, comm):
    """Site weights of the whole bank, in global order."""
    return np.concatenate(comm.allgather(bank["w"]))


def total_weight(bank, comm):
    """
    Total weight of the global bank, summed one site at a time in global
    order so the result does not depend on the number of ranks.
    """
    weights = global_weights(bank, comm)
    if len(weights) == 0:
        return 0.0
    return float(np.cumsum(weights)[-1])


# =============================================================================
# Weight combing
# =============================================================================


def comb_bank(bank, N, seed_cycle, comm):
    """
    Select exactly ``N`` sites from the global (sorted) bank by weight combing.

    Tooth ``k`` sits at ``(k + xi) W / N`` on the global cumulative weight,
    with ``xi`` drawn from the bank stream of the cycle. Each rank returns
    copies of its own sites hit by a tooth, in tooth order, and the global
    tooth indices they fill.
    """
    idx_start, N_local, N_global = bank_scanning(bank, comm)
    if N_global == 0:
        raise BankError("The fission bank is empty; the system cannot sustain a chain")

    # Exact global weight CDF, in global order
    weights = global_weights(bank, comm)
    w_cdf = np.zeros(N_global + 1)
    np.cumsum(weights, out=w_cdf[1:])
    W = w_cdf[-1]
    if not W > 0.0:
        raise BankError(f"The fission bank has non-positive total weight {W}")

    # Teeth
    xi = rng.lcg(rng.make_state(rng.split_seed(rng.SEED_SPLIT_BANK, seed_cycle)))
    teeth = (np.arange(N) + xi) * (W / N)
    idx = np.searchsorted(w_cdf, teeth, side="right") - 1
    idx = np.clip(idx, 0, N_global - 1)

    # Keep the teeth that land on local sites
    local = (idx >= idx_start) & (idx < idx_start + N_local)
    tooth_idx = np.nonzero(local)[0]
    return bank[idx[local] - idx_start], tooth_idx


def bank_rebalance(bank, tooth_idx, N, comm):
    """
    Send every combed site to the rank that owns its tooth index, so rank
    ``r`` ends up with the ``distribute_work(N, size, r)`` slice in order.
    """
    size = comm.Get_size()
    starts = np.array(mpi.work_starts(N, size))
    destination = np.searchsorted(starts, tooth_idx, side="right") - 1

    send = [bank[destination == rank] for rank in range(size)]
    received = comm.alltoall(send)
    if len(received) == 0:
        return np.zeros(0, dtype=site_dtype)
    return np.concatenate(received)


def synchronize_bank(sites, N, seed_cycle, comm):
    """
    Turn the local fission sites of a cycle into the local source bank of
    the next one.

    Raises
    ------
    BankError
        If the global bank is empty or the exchange does not yield exactly
        ``N`` sites.
    """
    bank = sort_bank(make_bank(sites))
    combed, tooth_idx = comb_bank(bank, N, seed_cycle, comm)
    return rebalance_and_verify(combed, tooth_idx, N, comm)


def rebalance_and_verify(combed, tooth_idx, N, comm):
    bank = bank_rebalance(combed, tooth_idx, N, comm)
    bank["w"] = 1.0

    _, work_size = mpi.distribute_work(N, comm.Get_size(), comm.Get_rank())
    N_global = comm.allreduce(len(bank), MPI.SUM)
    if N_global != N or len(bank) != work_size:
        raise BankError(
            f"Bank exchange produced {N_global} sites ({len(bank)} on rank "
            f"{comm.Get_rank()}, expected {work_size}); expected {N} in total"
        )
    return bank
