# ======================================================================================
# Run
# ======================================================================================


def run(N_inactive=None, N_active=None, N_particle=None):
    """
    Run the k-eigenvalue calculation on the registered model.

    The arguments (inactive cycles, active cycles, particles per cycle)
    override the corresponding settings when given. Fatal run errors
    (``KcodeError``) are reported on the console and re-raised.

    Returns
    -------
    RunResult
    """
    import kcode.print_ as print_module
    from mpi4py import MPI

    from kcode.error import KcodeError
    from kcode.object_.simulation import simulation

    # Timer: total
    time_total_start = MPI.Wtime()

    settings = simulation.settings

    # Override settings
    if N_inactive is not None:
        settings.N_inactive = N_inactive
    if N_active is not None:
        settings.N_active = N_active
    if N_particle is not None:
        settings.N_particle = N_particle

    try:
        # ==============================================================================
        # Preparation
        # ==============================================================================

        # Timer: preparation
        time_prep_start = MPI.Wtime()

        ctx = prepare()

        # Print headers
        print_module.print_banner()
        print_module.print_configuration(settings)
        print_module.print_msg(" Now running kcode...")
        print_module.print_header_eigenvalue(settings)

        # Timer: preparation
        ctx.runtime["preparation"] = MPI.Wtime() - time_prep_start

        # ==============================================================================
        # Running the simulation
        # ==============================================================================

        import kcode.transport.simulation as simulation_module

        simulation_module.eigenvalue_simulation(ctx)

    except KcodeError as error:
        print_module.print_error_report(error)
        raise

    # ==================================================================================
    # Results
    # ==================================================================================

    if settings.use_progress_bar:
        print_module.print_msg("")
    print_module.print_result_eigenvalue(ctx.k_avg_running, ctx.k_sdv_running)
    if ctx.n_lost > 0:
        records = ctx.comm.gather(ctx.lost_records)
        if ctx.master:
            records = [record for rank_records in records for record in rank_records]
        print_module.print_lost_summary(ctx.n_lost, records)

    import kcode.output as output_module

    # Timer: output
    time_output_start = MPI.Wtime()

    # Generate hdf5 output file
    if settings.save_output:
        output_module.generate_output(ctx)

    # Timer: output
    ctx.runtime["output"] = MPI.Wtime() - time_output_start

    # Final barrier
    ctx.comm.Barrier()

    # Timer: total
    ctx.runtime["total"] = MPI.Wtime() - time_total_start
    if settings.save_output:
        output_module.create_runtime_dataset(ctx)
    print_module.print_runtime(ctx.runtime, settings.N_particle * settings.N_cycle)

    return simulation_module.RunResult(
        k_eff=ctx.k_avg_running,
        k_std=ctx.k_sdv_running,
        k_cycle=ctx.k_cycle.copy(),
        tallies={
            tally.name: (tally.mean.copy(), tally.sdev.copy())
            for tally in ctx.tallies
        },
        n_lost=ctx.n_lost,
        runtime=dict(ctx.runtime),
        gyration_radius=(
            ctx.gyration_radius.copy() if settings.use_gyration_radius else None
        ),
    )


# ======================================================================================
# Preparation
# ======================================================================================


def prepare():
    """
    Check the registered model and build the run context: flat geometry
    arrays, the multigroup reaction sampler, and normalized sources.
    """
    from kcode.geometry.data import GeometryData
    from kcode.object_.simulation import simulation
    from kcode.object_.source import Source
    from kcode.physics.multigroup import MultigroupSampler
    from kcode.print_ import print_error, print_warning
    from kcode.transport.simulation import RunContext

    # ==================================================================================
    # Simulation settings
    # ==================================================================================

    settings = simulation.settings

    if settings.N_particle < 1:
        print_error("Number of particles per cycle has to be positive")
    if settings.N_active < 1:
        print_error("Eigenvalue mode needs at least one active cycle")
    if settings.N_worker < 1:
        print_error("Number of workers has to be positive")
    if len(simulation.materials) == 0:
        print_error("No material is defined")
    if not any(material.fissionable for material in simulation.materials):
        print_error("k-eigenvalue mode needs at least one fissionable material")

    # ==================================================================================
    # Simulation parameters
    # ==================================================================================

    # Default source
    if len(simulation.sources) == 0:
        print_warning("No source is defined; using an isotropic Watt point source")
        Source()

    # Source probabilities sum to one
    total = sum(source.probability for source in simulation.sources)
    for source in simulation.sources:
        source.probability /= total

    # ==================================================================================
    # Run context
    # ==================================================================================

    geometry = GeometryData(simulation)
    sampler = MultigroupSampler(
        simulation.materials, implicit_capture=simulation.implicit_capture.active
    )

    return RunContext(
        settings,
        geometry,
        sampler,
        simulation.sources,
        simulation.tallies,
        simulation.weight_roulette,
    )
