import numpy as np

from numba import njit

####

import kcode.geometry.surface as surface_kernel

from kcode.constant import (
    OP_COMPLEMENT,
    OP_LEFT_PAREN,
    OP_RIGHT_PAREN,
    OP_UNION,
)


@njit
def cell_contains(
    tokens,
    start,
    end,
    x,
    y,
    z,
    ux,
    uy,
    uz,
    surface_on,
    surface_type,
    surface_coeffs,
):
    """
    Evaluate the infix region tokens ``tokens[start:end]`` at a point.

    Complement binds tightest and applies to the next factor (a surface or a
    parenthesized group), adjacent factors are intersected, and union binds
    loosest. Every nesting depth keeps a union accumulator and the running
    intersection of the current term; a factor is skipped once its term is
    already false or the depth is already true. ``surface_on`` is the ID of
    a surface the point is known to lie on (-1 if none).
    """
    if start == end:
        return True

    size = (end - start) // 2 + 2
    union_acc = np.zeros(size, dtype=np.bool_)
    inter_acc = np.ones(size, dtype=np.bool_)
    negate_group = np.zeros(size, dtype=np.bool_)
    depth = 0
    negate_next = False

    i = start
    while i < end:
        token = tokens[i]

        if token == OP_COMPLEMENT:
            negate_next = not negate_next

        elif token == OP_UNION:
            union_acc[depth] = union_acc[depth] or inter_acc[depth]
            inter_acc[depth] = True
            if depth == 0 and union_acc[0]:
                return True

        elif token == OP_LEFT_PAREN:
            if union_acc[depth] or not inter_acc[depth]:
                # Skip the whole group
                level = 1
                while level > 0:
                    i += 1
                    if tokens[i] == OP_LEFT_PAREN:
                        level += 1
                    elif tokens[i] == OP_RIGHT_PAREN:
                        level -= 1
            else:
                depth += 1
                union_acc[depth] = False
                inter_acc[depth] = True
                negate_group[depth] = negate_next
            negate_next = False

        elif token == OP_RIGHT_PAREN:
            result = union_acc[depth] or inter_acc[depth]
            if negate_group[depth]:
                result = not result
            depth -= 1
            inter_acc[depth] = inter_acc[depth] and result

        else:
            if not union_acc[depth] and inter_acc[depth]:
                surface_ID = abs(token) - 1
                sense = surface_kernel.check_sense(
                    x,
                    y,
                    z,
                    ux,
                    uy,
                    uz,
                    surface_type[surface_ID],
                    surface_coeffs[surface_ID],
                    surface_ID == surface_on,
                )
                value = sense == (token > 0)
                if negate_next:
                    value = not value
                inter_acc[depth] = value
            negate_next = False

        i += 1

    return union_acc[0] or inter_acc[0]
