# -*- coding: utf-8 -*-
# ---
# jupyter:
#   jupytext:
#     formats: py:percent
#     notebook_metadata_filter: -jupytext.text_representation.jupytext_version,-kernelspec
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
# ---

# %% [markdown]
# # Shape algebra and index arithmetic for fixed-size tensors

# %%
from __future__ import annotations

# %%
import math
import functools
from itertools import combinations_with_replacement as multicombinations
from numbers import Integral
import numpy as np
from more_itertools import distinct_permutations

from typing import List, Sequence, Tuple
from scityping.numpy import Array

# %%
from .errors import UnsupportedShapeError

# %%
__all__ = [
    "SUPPORTED_DIMS", "SUPPORTED_ORDERS",
    "validate_shape_parameters", "n_components", "tensor_shape",
    "multicomb", "index_of_multicombination",
    "dense_offset", "dense_index",
    "symmetric2_offset", "symmetric2_index",
    "symmetric4_offset", "symmetric4_index",
    "storage_offset", "canonical_index", "representative_indices",
    "offset_table", "minor_orbit", "minor_symmetrize_index",
    "is_symmetric", "is_minor_symmetric"
]

# %% [markdown]
# ## Notation
#
# | Symbol | Desc                                  | Examples              |
# |--------|---------------------------------------|-----------------------|
# | $o$    | order (number of indices)             | 1, 2, 4               |
# | $d$    | dimension (size of each axis)         | 1, 2, 3               |
# | $I$    | multi-index (0-based)                 | `(0,1)`, `(2,0,1,1)`  |
# | $N$    | number of stored components           | 6 (symmetric, o=2, d=3) |
#
# Two storage kinds exist: *general* (every component stored) and
# *symmetric* (one component per index class under minor symmetry).
# Everything in this module depends only on $(o, d, \text{kind})$, never on
# stored data; the tensor classes evaluate these functions once, when they are
# specialized, and keep the results as class attributes.

# %% [markdown]
# ## Shape algebra

# %%
SUPPORTED_DIMS = (1, 2, 3)
# Keys: whether the storage is symmetric
SUPPORTED_ORDERS = {False: (1, 2, 4), True: (2, 4)}

# %%
def validate_shape_parameters(order: int, dim: int, symmetric: bool=False):
    """
    Raise `UnsupportedShapeError` unless (`order`, `dim`) is a supported
    shape for the given storage kind.
    """
    kind = "symmetric" if symmetric else "general"
    for name, value, allowed in (("order", order, SUPPORTED_ORDERS[bool(symmetric)]),
                                 ("dimension", dim, SUPPORTED_DIMS)):
        if isinstance(value, bool) or not isinstance(value, Integral):
            raise UnsupportedShapeError(
                f"Tensor {name} must be an integer, received {value!r}.")
        if value not in allowed:
            raise UnsupportedShapeError(
                f"Unsupported {name} {value} for {kind} tensors: "
                f"expected one of {allowed}.")


# %%
def n_components(order: int, dim: int, symmetric: bool=False) -> int:
    """
    Return the number of stored scalars for a tensor of given order,
    dimension and storage kind.

    - General: $d^o$.
    - Symmetric, order 2: $d^2 - d(d-1)/2$ (upper triangle with diagonal).
    - Symmetric, order 4: the square of the order 2 count.
    """
    validate_shape_parameters(order, dim, symmetric)
    if not symmetric:
        return dim**order
    n = multicomb(dim, 2)
    if order == 2:
        return n
    else:
        return n*n

# %%
def tensor_shape(order: int, dim: int) -> Tuple[int,...]:
    "Return the logical array shape, e.g. ``(3, 3)`` for a 3×3 second order tensor."
    validate_shape_parameters(order, dim)
    return (dim,)*order


# %% [markdown]
# ## Index arithmetic
#
# ### Multicombinations
#
# The upper triangle of a matrix, enumerated row by row, is exactly the
# sequence generated by
# ```python
# itertools.combinations_with_replacement(range(dim), 2)
# ```
# so the position of a pair $(i, j)$, $i \leq j$, is its rank among these
# multicombinations. `index_of_multicombination` computes that rank without
# generating the sequence.

# %%
def multicomb(n: int, k: int) -> int:
    """ Equivalent to `len(list(itertools.combinations_with_replacement(range(n), k)))`
    """
    return math.comb(n + k - 1, k)


def index_of_multicombination(n: int, d: Sequence[Integral]) -> int:
    """
    Equivalent to `list(itertools.combinations_with_replacement(range(n), len(d))).index(tuple(d))`.
    `d` must be sorted.
    """
    K = len(d)
    i = math.comb(n + K - 1, K) - 1
    for k, c_k in enumerate(reversed(d)):
        i -= math.comb(n - 1 + k - c_k, k + 1)
    return int(i)


# %% [markdown]
# ### General storage
#
# Column-major: the first index varies fastest,
# $\text{offset} = i_1 + d\,i_2 + d^2 i_3 + \dotsb$

# %%
def dense_offset(index: Sequence[int], dim: int) -> int:
    offset = 0
    for i in reversed(index):
        offset = offset*dim + i
    return offset

def dense_index(offset: int, order: int, dim: int) -> Tuple[int,...]:
    "Inverse of `dense_offset`."
    index = []
    for _ in range(order):
        offset, i = divmod(offset, dim)
        index.append(i)
    return tuple(index)


# %% [markdown]
# ### Symmetric storage
#
# Order 2 collapses $(i,j)$ to the upper triangle. Order 4 applies that
# collapse to each index pair, giving a row $I$ for $(i,j)$ and a column $J$
# for $(k,l)$, and stores the $N \times N$ block of these pairs (with
# $N$ the order 2 count) in column-major order.
# The order 4 mapping is thus a literal composition of the order 2 one, which
# keeps both consistent.
#
# A fourth order tensor with minor symmetry need not have major symmetry,
# hence the full block (and the $N^2$ stored components).

# %%
@functools.lru_cache(maxsize=None)
def _upper_triangle(dim: int) -> Tuple[Tuple[int,int],...]:
    return tuple(multicombinations(range(dim), 2))

def symmetric2_offset(i: int, j: int, dim: int) -> int:
    if i > j:
        i, j = j, i
    return index_of_multicombination(dim, (i, j))

def symmetric2_index(offset: int, dim: int) -> Tuple[int,int]:
    "Inverse of `symmetric2_offset`; always returns a pair with ``i <= j``."
    return _upper_triangle(dim)[offset]

def symmetric4_offset(i: int, j: int, k: int, l: int, dim: int) -> int:
    N = n_components(2, dim, symmetric=True)
    return symmetric2_offset(i, j, dim) + N*symmetric2_offset(k, l, dim)

def symmetric4_index(offset: int, dim: int) -> Tuple[int,int,int,int]:
    "Inverse of `symmetric4_offset`."
    N = n_components(2, dim, symmetric=True)
    J, I = divmod(offset, N)
    return symmetric2_index(I, dim) + symmetric2_index(J, dim)


# %% [markdown]
# ### Dispatch on storage kind

# %%
def storage_offset(index: Sequence[int], dim: int, symmetric: bool=False) -> int:
    """
    Return the position in the storage array of the component at `index`.
    Indices are not bounds-checked.
    """
    if not symmetric:
        return dense_offset(index, dim)
    elif len(index) == 2:
        return symmetric2_offset(*index, dim)
    elif len(index) == 4:
        return symmetric4_offset(*index, dim)
    else:
        raise UnsupportedShapeError(
            f"Symmetric storage is not defined for order {len(index)}.")

def canonical_index(offset: int, order: int, dim: int, symmetric: bool=False
    ) -> Tuple[int,...]:
    """
    Return the canonical representative multi-index of a storage slot.
    For symmetric storage, each index pair of the representative is sorted.
    """
    if not symmetric:
        return dense_index(offset, order, dim)
    elif order == 2:
        return symmetric2_index(offset, dim)
    elif order == 4:
        return symmetric4_index(offset, dim)
    else:
        raise UnsupportedShapeError(
            f"Symmetric storage is not defined for order {order}.")

# %%
def representative_indices(order: int, dim: int, symmetric: bool=False
    ) -> Tuple[Tuple[int,...],...]:
    """
    Return the canonical multi-index of each storage slot, in storage order.
    Has exactly `n_components(order, dim, symmetric)` entries.
    """
    return tuple(canonical_index(k, order, dim, symmetric)
                 for k in range(n_components(order, dim, symmetric)))

def offset_table(order: int, dim: int, symmetric: bool=False) -> Array:
    """
    Return a read-only integer array of shape ``(dim,)*order``, such that
    ``table[I]`` is the storage offset of multi-index ``I``.
    Indexing the storage array with this table reconstructs the dense tensor.
    """
    shape = tensor_shape(order, dim)
    table = np.empty(shape, dtype=np.intp)
    for index in np.ndindex(*shape):
        table[index] = storage_offset(index, dim, symmetric)
    table.flags.writeable = False
    return table


# %% [markdown]
# ### Symmetry orbits
#
# The *minor orbit* of a multi-index is the set of indices obtained by
# swapping within the first pair and/or within the second pair.
# All indices of an orbit are mapped to the same symmetric storage slot.
#
# | Index       | Orbit                                          |
# |-------------|------------------------------------------------|
# | `(0,1)`     | `(0,1)`, `(1,0)`                               |
# | `(0,0,1,2)` | `(0,0,1,2)`, `(0,0,2,1)`                       |
# | `(0,1,1,2)` | `(0,1,1,2)`, `(0,1,2,1)`, `(1,0,1,2)`, `(1,0,2,1)` |

# %%
def minor_orbit(index: Sequence[int]) -> Tuple[Tuple[int,...],...]:
    "Return the (sorted) minor orbit of a multi-index of order 1, 2 or 4."
    index = tuple(index)
    if len(index) == 1:
        return (index,)
    elif len(index) == 2:
        return tuple(distinct_permutations(index))
    elif len(index) == 4:
        return tuple(p + q for p in distinct_permutations(index[:2])
                           for q in distinct_permutations(index[2:]))
    else:
        raise UnsupportedShapeError(
            f"Minor symmetry is not defined for order {len(index)}.")

# %% [markdown]
# Adapted from `symmetrize_index`: returns the orbit as an advanced index, so
# that all equivalent components of a dense array can be get or set at once.
#
# $$I := \texttt{(0,1,2,2)} \mapsto \hat{I} := \texttt{([0, 1], [1, 0], [2, 2], [2, 2])}$$

# %%
def minor_symmetrize_index(index: Sequence[int]) -> Tuple[List[int], ...]:
    # Convert from tuple to list to trigger advanced indexing
    return tuple(list(permuted_index) for permuted_index in zip(*minor_orbit(index)))


# %% [markdown]
# ## Array utilities
#
# Checks on plain NumPy arrays, used when dense data is passed to a symmetric
# tensor constructor. Arrays are compared with `numpy.allclose`; tolerance
# parameters `rtol` and `atol` are passed on to that function.

# %%
def is_symmetric(dense_tensor: Array, rtol=1e-5, atol=1e-8) -> bool:
    "Return True if the 2d array `dense_tensor` is square and symmetric."
    A = np.asarray(dense_tensor)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        return False
    return np.allclose(A, A.T, rtol, atol, equal_nan=True)

def is_minor_symmetric(dense_tensor: Array, rtol=1e-5, atol=1e-8) -> bool:
    "Return True if the 4d array `dense_tensor` has both minor symmetries."
    A = np.asarray(dense_tensor)
    if A.ndim != 4 or len(set(A.shape)) > 1:
        return False
    return all(np.allclose(A, A.transpose(σaxes), rtol, atol, equal_nan=True)
               for σaxes in ((1, 0, 2, 3), (0, 1, 3, 2)))
