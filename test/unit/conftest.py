import pytest

####

import kcode


@pytest.fixture(autouse=True)
def fresh_model():
    """Every test starts from an empty model with quiet, file-free settings."""
    kcode.simulation.reset()
    kcode.settings.save_output = False
    kcode.settings.use_progress_bar = False
    yield
    kcode.simulation.reset()
