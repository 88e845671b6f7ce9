def distribute_work(N_work, size, rank):
    """
    Contiguous share ``[start, start + count)`` of ``N_work`` items for
    ``rank`` out of ``size``; the first ``N_work % size`` ranks get one more.
    """
    base, rem = divmod(N_work, size)
    work_size = base + (1 if rank < rem else 0)
    work_start = base * rank + min(rank, rem)
    return work_start, work_size


def work_starts(N_work, size):
    """Starting index of every rank's share, in rank order."""
    return [distribute_work(N_work, size, rank)[0] for rank in range(size)]
