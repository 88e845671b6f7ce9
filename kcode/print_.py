import numba as nb
import sys

from colorama import Fore, Style
from mpi4py import MPI

master = MPI.COMM_WORLD.Get_rank() == 0


def print_1d_array(arr):
    """Short form of a 1-D array: the first and last two entries if long."""
    N = len(arr)
    shown = list(arr) if N <= 5 else [arr[0], arr[1], None, arr[-2], arr[-1]]
    items = ", ".join("..." if x is None else f"{x:.5g}" for x in shown)
    return f"(size={N}): [{items}]"


def print_msg(msg):
    if master:
        print(msg)
        sys.stdout.flush()


def print_error(text):
    """Report an input error and exit; every rank exits, the master prints."""
    if master:
        print(Fore.RED + f"[ERROR]: {text}\n")
        print(Style.RESET_ALL)
        sys.stdout.flush()
    sys.exit()


def print_warning(text):
    if master:
        print(Fore.YELLOW + f"[WARNING]: {text}\n")
        print(Style.RESET_ALL)
        sys.stdout.flush()


def print_error_report(error):
    """
    Report a fatal run error without exiting; the caller re-raises it.
    """
    rank = MPI.COMM_WORLD.Get_rank()
    print(Fore.RED + f"[ERROR] (rank {rank}) {type(error).__name__}: {error}")
    print(Style.RESET_ALL)
    sys.stdout.flush()


def print_banner():
    if not master:
        return
    print(
        "\n"
        + r"  _                    _      "
        + "\n"
        + r" | | _____ ___   __| | ___ "
        + "\n"
        + r" | |/ / __/ _ \ / _` |/ _ \ "
        + "\n"
        + r" |   < (_| (_) | (_| |  __/"
        + "\n"
        + r" |_|\_\___\___/ \__,_|\___|"
        + "\n"
    )
    sys.stdout.flush()


def print_configuration(settings):
    if not master:
        return
    mode = "Python" if nb.config.DISABLE_JIT else "Numba"
    mpi_size = MPI.COMM_WORLD.Get_size()

    text = ""
    text += f"           Mode | {mode}\n"
    text += f"  MPI Processes | {mpi_size}\n"
    text += f"        Workers | {settings.N_worker} per process\n"
    text += f"      Particles | {settings.N_particle} per cycle\n"
    text += f"         Cycles | {settings.N_inactive} inactive, {settings.N_active} active\n"
    print(text)
    sys.stdout.flush()


# ======================================================================================
# Eigenvalue progress
# ======================================================================================


def print_header_eigenvalue(settings):
    if master:
        if settings.use_gyration_radius:
            print("\n #     k        GyRad.  k (avg)            ")
            print(" ====  =======  ======  ===================")
        else:
            print("\n #     k        k (avg)            ")
            print(" ====  =======  ===================")
        sys.stdout.flush()


def print_progress_eigenvalue(ctx):
    if master:
        idx_cycle = ctx.idx_cycle
        k_eff = ctx.k_eff
        k_avg = ctx.k_avg_running
        k_sdv = ctx.k_sdv_running
        if ctx.settings.use_gyration_radius:
            gr = ctx.gyration_radius[idx_cycle]
            if not ctx.cycle_active:
                print(" %-4i  %.5f  %6.2f" % (idx_cycle + 1, k_eff, gr))
            else:
                print(
                    " %-4i  %.5f  %6.2f  %.5f +/- %.5f"
                    % (idx_cycle + 1, k_eff, gr, k_avg, k_sdv)
                )
        else:
            if not ctx.cycle_active:
                print(" %-4i  %.5f" % (idx_cycle + 1, k_eff))
            else:
                print(
                    " %-4i  %.5f  %.5f +/- %.5f" % (idx_cycle + 1, k_eff, k_avg, k_sdv)
                )
        sys.stdout.flush()


# ======================================================================================
# End-of-run reports
# ======================================================================================


def print_result_eigenvalue(k_eff, k_std):
    if master:
        print(f"\n Combined k-effective = {k_eff:.5f} +/- {k_std:.5f}")
        sys.stdout.flush()


def print_lost_summary(n_lost, records, max_listed=5):
    if not master or n_lost == 0:
        return
    print(Fore.YELLOW + f"[WARNING]: {n_lost} particle(s) lost during the run")
    for record in records[:max_listed]:
        x, y, z = record.xyz
        print(
            f"   - particle {record.particle_ID}, cell {record.cell_ID}, "
            f"({x:.6g}, {y:.6g}, {z:.6g}): {record.reason}"
        )
    if len(records) > max_listed:
        print(f"   ... and {len(records) - max_listed} more")
    if len(records) > 0 and records[0].details:
        print(" First lost particle:")
        print(records[0].details)
    print(Style.RESET_ALL)
    sys.stdout.flush()


def print_runtime(runtime, N_history):
    total = runtime["total"]
    if not master or total <= 0.0:
        return
    print("\n Runtime report:")
    print_time("Total           ", total, 100)
    for tag, key in [
        ("Preparation     ", "preparation"),
        ("Inactive cycles ", "inactive"),
        ("Active cycles   ", "active"),
        ("  Bank sampling ", "bank_sampling"),
        ("  Bank exchange ", "bank_exchange"),
        ("  Tally closeout", "tally_closeout"),
        ("Output          ", "output"),
    ]:
        print_time(tag, runtime[key], runtime[key] / total * 100)
    simulation = runtime["inactive"] + runtime["active"]
    if simulation > 0.0:
        print("   Calculation rate | %.6g particles/second" % (N_history / simulation))
    print("\n")
    sys.stdout.flush()


TIME_UNITS = [("days", 24 * 60 * 60), ("hours", 60 * 60), ("minutes", 60), ("seconds", 1)]


def print_time(tag, t, percent):
    for unit, scale in TIME_UNITS:
        if t >= scale or unit == "seconds":
            print("   %s | %.2f %s (%.1f%%)" % (tag, t / scale, unit, percent))
            return
