import h5py
import importlib.metadata

####

import kcode.print_ as print_module


# ======================================================================================
# Main output
# ======================================================================================


def generate_output(ctx):
    if not ctx.master:
        return

    settings = ctx.settings
    print_module.print_msg(" Generating output HDF5 file...")

    with h5py.File(settings.output_name + ".h5", "w") as file:
        # Version
        file["version"] = importlib.metadata.version("kcode")

        # Settings
        create_object_dataset(file, "settings", settings)

        # Eigenvalues
        file.create_dataset("k_cycle", data=ctx.k_cycle)
        file.create_dataset("k_mean", data=ctx.k_avg_running)
        file.create_dataset("k_sdev", data=ctx.k_sdv_running)
        if settings.use_gyration_radius:
            file.create_dataset("gyration_radius", data=ctx.gyration_radius)

        # Lost particles
        file.create_dataset("n_lost", data=ctx.n_lost)

        # Tallies
        create_tally_dataset(file, ctx)


# ======================================================================================
# Input objects
# ======================================================================================


def create_object_dataset(file, group_name, object_):
    for name in [
        x
        for x in dir(object_)
        if (not x.startswith("_") and not callable(getattr(object_, x)))
    ]:
        file[f"{group_name}/{name}"] = getattr(object_, name)


# ======================================================================================
# Tallies
# ======================================================================================


def create_tally_dataset(file, ctx):
    for tally in ctx.tallies:
        group_name = f"tallies/{tally.name}"
        file.create_dataset(f"{group_name}/energy", data=tally.energy)
        file.create_dataset(f"{group_name}/cell", data=tally.cell.ID)
        for i, score_type in enumerate(tally.scores):
            score_name = decode_score_name(score_type)
            file.create_dataset(
                f"{group_name}/{score_name}/mean", data=tally.mean[:, i]
            )
            file.create_dataset(
                f"{group_name}/{score_name}/sdev", data=tally.sdev[:, i]
            )


def decode_score_name(score_type):
    from kcode.object_.tally import decode_score_type

    return decode_score_type(score_type).lower()


# ======================================================================================
# Runtimes
# ======================================================================================


def create_runtime_dataset(ctx):
    if not ctx.master:
        return

    with h5py.File(ctx.settings.output_name + ".h5", "a") as file:
        for name, value in ctx.runtime.items():
            file.create_dataset(f"runtime/{name}", data=value)
