import numpy as np

from types import UnionType
from typing import Annotated, Union, get_args, get_origin

####

from kcode.print_ import print_error


# ======================================================================================
# Object base classes
# ======================================================================================


class ObjectBase:
    def __init__(self, register):
        if register and isinstance(self, ObjectNonSingleton):
            register_object(self)

    def __setattr__(self, key, value):
        hints = getattr(self.__class__, "__annotations__", {})
        if key in hints and not check_type(value, hints[key]):
            print_error(f"{key} must be {hints[key]!r}, got {value!r}")
        super().__setattr__(key, value)


class ObjectSingleton(ObjectBase):
    def __init__(self):
        super().__init__(register=False)


class ObjectNonSingleton(ObjectBase):
    ID: int

    def __init__(self, register=True):
        self.ID = -1
        super().__init__(register)


# ======================================================================================
# Helper functions
# ======================================================================================


def register_object(object_):
    from kcode.object_.simulation import simulation

    from kcode.object_.cell import Region, Cell
    from kcode.object_.material import MaterialMG
    from kcode.object_.source import Source
    from kcode.object_.surface import Surface
    from kcode.object_.tally import TallyCell
    from kcode.object_.universe import Universe, Lattice

    object_list = []
    if isinstance(object_, Cell):
        object_list = simulation.cells
    elif isinstance(object_, Lattice):
        object_list = simulation.lattices
    elif isinstance(object_, MaterialMG):
        object_list = simulation.materials
    elif isinstance(object_, Region):
        object_list = simulation.regions
    elif isinstance(object_, Source):
        object_list = simulation.sources
    elif isinstance(object_, Surface):
        object_list = simulation.surfaces
    elif isinstance(object_, TallyCell):
        object_list = simulation.tallies
    elif isinstance(object_, Universe):
        object_list = simulation.universes
    else:
        print_error(f"Unidentified object list for object {object_}")

    object_.ID = len(object_list)
    object_list.append(object_)


# ======================================================================================
# Type checker
# ======================================================================================


_BUILTINS = {"bool": bool, "float": float, "int": int, "str": str, "list": list}


def check_type(value, hint) -> bool:
    """
    Best-effort runtime check of a value against a class annotation.

    String (forward-reference) annotations are matched by class name against
    the value's MRO; numpy arrays only need to be arrays; container element
    types are checked for ``list`` only.
    """
    if isinstance(hint, str):
        parts = [x.strip() for x in hint.split("|")]
        if len(parts) > 1:
            return any(check_type(value, x) for x in parts)
        if parts[0] == "NoneType":
            return value is None
        name = parts[0].split("[", 1)[0].split(".")[-1]
        if name in ("NDArray", "ndarray", "Annotated"):
            return isinstance(value, np.ndarray)
        if name in _BUILTINS:
            return check_type(value, _BUILTINS[name])
        return any(base.__name__ == name for base in value.__class__.mro())

    origin = get_origin(hint)

    if origin is None:
        if hint is float:
            return isinstance(value, (float, int, np.floating, np.integer))
        if hint is int:
            return isinstance(value, (int, np.integer)) and not isinstance(value, bool)
        try:
            return isinstance(value, hint)
        except TypeError:
            return True

    if origin is Annotated:
        return check_type(value, get_args(hint)[0])

    if origin in (Union, UnionType):
        return any(check_type(value, x) for x in get_args(hint))

    if origin is list:
        (t,) = get_args(hint)
        return isinstance(value, list) and all(check_type(x, t) for x in value)

    if origin is np.ndarray:
        return isinstance(value, np.ndarray)

    try:
        return isinstance(value, origin)
    except TypeError:
        return True


