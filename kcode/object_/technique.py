from kcode.object_.base import ObjectSingleton
from kcode.print_ import print_error


# ======================================================================================
# Implicit capture (survival biasing)
# ======================================================================================


class ImplicitCapture(ObjectSingleton):
    active: bool

    def __init__(self):
        super().__init__()
        self.active = False

    def __call__(self, active: bool = True):
        self.active = active


# ======================================================================================
# Weight roulette
# ======================================================================================


class WeightRoulette(ObjectSingleton):
    """
    Russian roulette for low-weight particles.

    A particle with weight below ``weight_threshold`` survives with probability
    ``w / weight_target`` and is restored to ``weight_target``; otherwise it is
    killed.
    """

    weight_threshold: float
    weight_target: float

    def __init__(self):
        super().__init__()
        self.weight_threshold = 0.25
        self.weight_target = 1.0

    def __call__(self, weight_threshold: float = 0.25, weight_target: float = 1.0):
        if weight_threshold > weight_target:
            print_error(
                "For weight roulette, weight threshold has to be smaller than the target"
            )
        if weight_target <= 0.0:
            print_error("For weight roulette, weight target has to be positive")
        self.weight_threshold = weight_threshold
        self.weight_target = weight_target
