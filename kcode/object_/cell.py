from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kcode.object_.surface import Surface

####

import numpy as np
import sympy

from numpy import float64
from numpy.typing import NDArray
from operator import attrgetter
from types import NoneType
from typing import Annotated, Iterable

####

from kcode.constant import (
    FILL_LATTICE,
    FILL_MATERIAL,
    FILL_NONE,
    FILL_UNIVERSE,
    OP_COMPLEMENT,
    OP_LEFT_PAREN,
    OP_RIGHT_PAREN,
    OP_UNION,
)
from kcode.error import RegionError
from kcode.object_.base import ObjectNonSingleton
from kcode.object_.material import MaterialMG
from kcode.object_.simulation import simulation
from kcode.object_.universe import Universe, Lattice
from kcode.print_ import print_error

# ======================================================================================
# Region
# ======================================================================================


class Region(ObjectNonSingleton):
    """
    Node of a region tree: the half-space of a surface (``B`` is the sense),
    or a boolean combination of other regions.

    Nodes are created through :meth:`make`, which hands back an existing node
    when an identical one has been built before.
    """

    type: str
    A: Surface | Region | NoneType
    B: Region | int | NoneType

    def __init__(self, type_, A, B):
        super().__init__()

        self.type = type_
        self.A = A
        self.B = B

    @classmethod
    def make(cls, type_, A=None, B=None):
        for region in simulation.regions:
            if region.type == type_ and region.A is A and region.B == B:
                return region
        return cls(type_, A, B)

    @classmethod
    def make_halfspace(cls, surface, sense):
        return cls.make("halfspace", surface, sense)

    def __and__(self, other):
        return Region.make("intersection", self, other)

    def __or__(self, other):
        return Region.make("union", self, other)

    def __invert__(self):
        return Region.make("complement", self)

    def __repr__(self):
        if self.type == "halfspace":
            sign = "+" if self.B > 0 else "-"
            return f"Region: {sign}s{self.A.ID}"
        if self.type == "complement":
            return f"Region: ~r{self.A.ID}"
        if self.type in ("intersection", "union"):
            op = "&" if self.type == "intersection" else "|"
            return f"Region: r{self.A.ID} {op} r{self.B.ID}"
        return "Region: all"


# ======================================================================================
# Cell
# ======================================================================================


class Cell(ObjectNonSingleton):
    """
    Region of space bounded by surface half-spaces and holding a single fill.

    The region is stored as an infix token sequence: signed surface tokens
    ``±(ID+1)`` for the positive/negative half-space, ``OP_UNION``,
    ``OP_COMPLEMENT``, and grouping parentheses. Adjacent operands are
    intersected. Precedence, high to low: complement, intersection, union.
    """

    label: str = "cell"
    #
    name: str
    region: Region
    fill: MaterialMG | Universe | Lattice | NoneType
    universe: Universe | NoneType
    translation: Annotated[NDArray[float64], (3,)]
    region_tokens: list[int]
    surfaces: list[Surface]
    #
    fill_type: int
    fill_ID: int

    def __init__(
        self,
        region: Region | NoneType = None,
        fill: MaterialMG | Universe | Lattice | NoneType = None,
        name: str = "",
        translation: Iterable[float] = [0.0, 0.0, 0.0],
    ):
        super().__init__()

        # Set name
        if name != "":
            self.name = name
        else:
            self.name = f"{self.label}_{self.ID}"

        # Set region
        if region is None:
            self.region = Region.make("all")
        else:
            self.region = region

        # Parent universe (set when the cell is added to one)
        self.universe = None

        # Set fill
        self.fill = fill

        # Placement of the fill (local = parent - translation)
        self.translation = np.array(translation, dtype=float)

        # Region infix tokens
        self.region_tokens = generate_tokens(self.region)
        validate_tokens(self.region_tokens)
        self._expression = None

        # List surfaces
        self.surfaces = list_surfaces(self.region_tokens)

        # Integer handle of the fill
        if isinstance(fill, MaterialMG):
            self.fill_type = FILL_MATERIAL
            self.fill_ID = fill.ID
        elif isinstance(fill, Universe):
            self.fill_type = FILL_UNIVERSE
            self.fill_ID = fill.ID
        elif isinstance(fill, Lattice):
            self.fill_type = FILL_LATTICE
            self.fill_ID = fill.ID
        elif fill is None:
            self.fill_type = FILL_NONE
            self.fill_ID = -1
        else:
            print_error(f"Unsupported cell fill: {fill}")

    @property
    def expression(self):
        """Simplified boolean expression of the region (sympy)."""
        if self._expression is None:
            self._expression = generate_expression(self.region_tokens)
        return self._expression

    def __repr__(self):
        text = "\n"
        text += f"Cell\n"
        text += f"  - ID: {self.ID}\n"
        text += f"  - Name: {self.name}\n"
        text += f"  - Region: {describe_tokens(self.region_tokens)}\n"
        if isinstance(self.fill, MaterialMG):
            text += f"  - Fill (material): {self.fill.name}\n"
        elif isinstance(self.fill, Lattice):
            text += f"  - Fill (lattice): {self.fill.name}\n"
        elif isinstance(self.fill, Universe):
            text += f"  - Fill (universe): {self.fill.name}\n"
        else:
            text += f"  - Fill: void\n"
        if (self.translation != 0.0).any():
            text += f"  - Translation: {self.translation}\n"
        text += f"  - Bounding surfaces: {[x.ID for x in self.surfaces]}\n"
        return text


# ======================================================================================
# Region tokens
# ======================================================================================


def generate_tokens(region, parent=None):
    """
    Convert a region tree into infix tokens.

    Unions are grouped when nested inside an intersection or a complement, and
    intersections are grouped when complemented.
    """
    if region.type == "all":
        if parent is not None:
            raise RegionError("The universal region cannot be combined with others")
        return []

    if region.type == "halfspace":
        handle = region.A.ID + 1
        return [handle if region.B > 0 else -handle]

    if region.type == "intersection":
        tokens = generate_tokens(region.A, "intersection")
        tokens += generate_tokens(region.B, "intersection")
        if parent == "complement":
            tokens = [OP_LEFT_PAREN] + tokens + [OP_RIGHT_PAREN]
        return tokens

    if region.type == "union":
        tokens = generate_tokens(region.A, "union")
        tokens += [OP_UNION]
        tokens += generate_tokens(region.B, "union")
        if parent in ("intersection", "complement"):
            tokens = [OP_LEFT_PAREN] + tokens + [OP_RIGHT_PAREN]
        return tokens

    if region.type == "complement":
        return [OP_COMPLEMENT] + generate_tokens(region.A, "complement")

    raise RegionError(f"Unrecognized region type: {region.type}")


def _is_surface_token(token):
    return token != 0 and abs(token) < OP_UNION


def validate_tokens(tokens):
    """
    Check that an infix token sequence is well formed.

    Parentheses have to balance; operands and binary operators have to
    alternate properly; a complement or a left parenthesis has to be followed by
    an operand. An empty sequence is the universal region.
    """
    if len(tokens) == 0:
        return

    depth = 0
    # Whether the previous token closed an operand
    after_operand = False
    for i, token in enumerate(tokens):
        if _is_surface_token(token) or token == OP_LEFT_PAREN or token == OP_COMPLEMENT:
            if token == OP_LEFT_PAREN:
                depth += 1
            # Adjacent operands are an implicit intersection
            after_operand = _is_surface_token(token)
        elif token == OP_RIGHT_PAREN:
            if not after_operand:
                raise RegionError(f"Empty or dangling group before token {i}")
            depth -= 1
            if depth < 0:
                raise RegionError(f"Unbalanced right parenthesis at token {i}")
            after_operand = True
        elif token == OP_UNION:
            if not after_operand:
                raise RegionError(f"Union without left operand at token {i}")
            after_operand = False
        else:
            raise RegionError(f"Unknown region token {token} at position {i}")

    if depth != 0:
        raise RegionError("Unbalanced left parenthesis in region")
    if not after_operand:
        raise RegionError("Region ends with an operator")


def describe_tokens(tokens):
    if len(tokens) == 0:
        return "all"
    text = []
    for token in tokens:
        if token == OP_LEFT_PAREN:
            text.append("(")
        elif token == OP_RIGHT_PAREN:
            text.append(")")
        elif token == OP_UNION:
            text.append("|")
        elif token == OP_COMPLEMENT:
            text.append("~")
        elif token > 0:
            text.append(f"+s{token - 1}")
        else:
            text.append(f"-s{-token - 1}")
    return " ".join(text).replace("( ", "(").replace(" )", ")").replace("~ ", "~")


def generate_expression(tokens):
    if len(tokens) == 0:
        return sympy.true

    # Shunting-yard into a sympy expression
    values = []
    operators = []
    precedence = {OP_UNION: 1, "&": 2, OP_COMPLEMENT: 3}

    def apply(op):
        if op == OP_COMPLEMENT:
            values.append(~values.pop())
        else:
            right = values.pop()
            left = values.pop()
            values.append(left | right if op == OP_UNION else left & right)

    def push_operator(op):
        while (
            operators
            and operators[-1] != OP_LEFT_PAREN
            and precedence[operators[-1]] >= precedence[op]
        ):
            apply(operators.pop())
        operators.append(op)

    after_operand = False
    for token in tokens:
        if _is_surface_token(token) or token in (OP_LEFT_PAREN, OP_COMPLEMENT):
            if after_operand:
                push_operator("&")
            if token == OP_LEFT_PAREN:
                operators.append(OP_LEFT_PAREN)
                after_operand = False
            elif token == OP_COMPLEMENT:
                operators.append(OP_COMPLEMENT)
                after_operand = False
            else:
                symbol = sympy.symbols(f"s{abs(token) - 1}")
                values.append(symbol if token > 0 else ~symbol)
                after_operand = True
        elif token == OP_RIGHT_PAREN:
            while operators[-1] != OP_LEFT_PAREN:
                apply(operators.pop())
            operators.pop()
            after_operand = True
        elif token == OP_UNION:
            push_operator(OP_UNION)
            after_operand = False
    while operators:
        apply(operators.pop())

    return sympy.logic.boolalg.simplify_logic(values[0])


def list_surfaces(tokens):
    surfaces = []

    for token in tokens:
        if _is_surface_token(token):
            surface = simulation.surfaces[abs(token) - 1]
            if surface not in surfaces:
                surfaces.append(surface)

    return sorted(surfaces, key=attrgetter("ID"))
