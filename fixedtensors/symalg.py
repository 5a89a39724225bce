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
# # Symmetry decomposition of fixed-size tensors
#
# Normally these functions would be accessed from the top level:
# ```python
# import fixedtensors as ft
# ft.symmetric(A)
# ```

# %%
from __future__ import annotations

# %%
import logging
from typing import Iterator, Tuple, Union

# %%
from .base import AbstractTensor
from .tensor import Tensor
from .symmetric_tensor import SymmetricTensor

# %%
logger = logging.getLogger(__name__)

# %%
__all__ = [
    "transpose", "minortranspose", "majortranspose",
    "symmetric", "skew", "minorsymmetric", "majorsymmetric",
    "issymmetric", "isminorsymmetric", "ismajorsymmetric"
    ]

# %% [markdown]
# ## Conventions
#
# - Every function is pure: inputs are never modified, and results are new
#   tensors (or the input itself, when it is already the result).
# - Every result is built through the function constructor
#   (`Kind[order, dim](f)`), which evaluates `f` exactly once per stored
#   component. For a symmetric result, `f` is never evaluated on symmetric
#   duplicates.
# - Averages are unweighted means over the symmetry orbit of each index.
#   Indices whose orbit has size one are passed through unchanged.
# - Applying a function to a tensor of an order for which it is not defined
#   raises `TypeError`.

# %%
def _check_order(t: AbstractTensor, orders: Tuple[int,...], name: str):
    if not isinstance(t, AbstractTensor):
        raise TypeError(f"`{name}` expects a tensor; received {type(t)}.")
    if t.order not in orders:
        raise TypeError(f"`{name}` is not defined for tensors of order {t.order}.")


# %% [markdown]
# ## Transposes

# %%
def transpose(A: Union[Tensor, SymmetricTensor]) -> Union[Tensor, SymmetricTensor]:
    "$A^T_{ij} = A_{ji}$. Symmetric tensors are returned unchanged."
    _check_order(A, (2,), "transpose")
    return A.T

def minortranspose(S: Union[Tensor, SymmetricTensor]) -> Union[Tensor, SymmetricTensor]:
    "$S^t_{ijkl} = S_{jilk}$. Symmetric tensors are returned unchanged."
    _check_order(S, (4,), "minortranspose")
    if isinstance(S, SymmetricTensor):
        return S
    return Tensor[4, S.dim](lambda i, j, k, l: S[j, i, l, k])

def majortranspose(S: Union[Tensor, SymmetricTensor]) -> Union[Tensor, SymmetricTensor]:
    """
    $S^T_{ijkl} = S_{klij}$.
    The major transpose preserves minor symmetry, so the result has the same
    storage kind as `S`.
    """
    _check_order(S, (4,), "majortranspose")
    return type(S)._kind[4, S.dim](lambda i, j, k, l: S[k, l, i, j])


# %% [markdown]
# ## Symmetric and skew parts
#
# Any second order tensor decomposes as
# $$A = \underbrace{\tfrac{1}{2}(A + A^T)}_{\text{symmetric}(A)} + \underbrace{\tfrac{1}{2}(A - A^T)}_{\text{skew}(A)} \,.$$
# The skew part is antisymmetric, which the symmetric storage cannot represent,
# so it is always returned as a general `Tensor`.

# %%
def symmetric(A: Union[Tensor, SymmetricTensor]) -> SymmetricTensor:
    """
    Return the symmetric part of a second or fourth order tensor, as a
    `SymmetricTensor`. For a fourth order tensor, this is the minor symmetric
    part (see `minorsymmetric`).
    """
    _check_order(A, (2, 4), "symmetric")
    if isinstance(A, SymmetricTensor):
        return A
    if A.order == 4:
        return minorsymmetric(A)
    return SymmetricTensor[2, A.dim](
        lambda i, j: A[i, j] if i == j else (A[i, j] + A[j, i]) / 2)

def skew(A: Union[Tensor, SymmetricTensor]) -> Tensor:
    """
    Return the skew-symmetric (anti-symmetric) part of a second order
    tensor, as a `Tensor`. For a `SymmetricTensor`, this is a zero tensor.
    """
    _check_order(A, (2,), "skew")
    if isinstance(A, SymmetricTensor):
        return Tensor[2, A.dim].zero(dtype=A.dtype)
    return (A - A.T) / 2


# %% [markdown]
# ## Minor and major symmetric parts
#
# The minor orbit of $(i,j,k,l)$ is $\{(i,j,k,l), (j,i,k,l), (i,j,l,k), (j,i,l,k)\}$.
# When $i = j$ or $k = l$ this contains repeated indices; counting them
# as in the formula below still yields the mean over the distinct ones.

# %%
def minorsymmetric(S: Union[Tensor, SymmetricTensor]) -> SymmetricTensor:
    "Return the minor symmetric part of a fourth order tensor, as a `SymmetricTensor`."
    _check_order(S, (4,), "minorsymmetric")
    if isinstance(S, SymmetricTensor):
        return S
    def f(i, j, k, l):
        if i == j and k == l:
            return S[i, j, k, l]
        else:
            return (S[i, j, k, l] + S[j, i, k, l] + S[i, j, l, k] + S[j, i, l, k]) / 4
    return SymmetricTensor[4, S.dim](f)

def majorsymmetric(S: Union[Tensor, SymmetricTensor]) -> Tensor:
    """
    Return the major symmetric part of a fourth order tensor, as a `Tensor`.
    Each component is averaged with its pair-swapped partner $S_{klij}$.
    """
    _check_order(S, (4,), "majorsymmetric")
    def f(i, j, k, l):
        if i == j == k == l or (i == k and j == l):
            return S[i, j, k, l]
        else:
            return (S[i, j, k, l] + S[k, l, i, j]) / 2
    return Tensor[4, S.dim](f)


# %% [markdown]
# ## Symmetry checks
#
# Comparisons are exact. To test for approximate symmetry, compare
# a tensor with its symmetric part using `numpy.allclose`.
#
# For fourth order tensors, only the region
# $l \leq k$, $j \leq i$ (0-based: `l in range(dim)`, `k in range(l, dim)`,
# `j in range(dim)`, `i in range(j, dim)`) is scanned; the scan stops at the
# first violation.
#
# :::{caution}
# Since only that region is visited, these predicates are not complete checks
# on arbitrary general tensors. A tensor whose only nonzero component is
# $T_{0101}$ passes `isminorsymmetric`, and one whose only nonzero component is
# $T_{0100}$ passes `ismajorsymmetric`. They are exact on the results of
# `minorsymmetric` and `majorsymmetric`. For a complete check of the minor
# symmetries, use `utils.is_minor_symmetric(t.todense())`.
# :::

# %%
def _scan_region(dim: int) -> Iterator[Tuple[int,int,int,int]]:
    for l in range(dim):
        for k in range(l, dim):
            for j in range(dim):
                for i in range(j, dim):
                    yield i, j, k, l

# %%
def isminorsymmetric(t: Union[Tensor, SymmetricTensor]) -> bool:
    _check_order(t, (4,), "isminorsymmetric")
    if isinstance(t, SymmetricTensor):
        return True
    for i, j, k, l in _scan_region(t.dim):
        if t[i, j, k, l] != t[j, i, k, l] or t[i, j, k, l] != t[i, j, l, k]:
            logger.debug("Minor symmetry violated at index %s.", (i, j, k, l))
            return False
    return True

def ismajorsymmetric(t: Union[Tensor, SymmetricTensor]) -> bool:
    _check_order(t, (4,), "ismajorsymmetric")
    for i, j, k, l in _scan_region(t.dim):
        if t[i, j, k, l] != t[k, l, i, j]:
            logger.debug("Major symmetry violated at index %s.", (i, j, k, l))
            return False
    return True

# %% [markdown]
# Second order tensors have at most three off-diagonal pairs, so they are
# compared directly.

# %%
def issymmetric(t: Union[Tensor, SymmetricTensor]) -> bool:
    """
    Return True if `t` is symmetric. For a fourth order tensor, this means
    minor symmetric. Always True for a `SymmetricTensor`.
    """
    _check_order(t, (2, 4), "issymmetric")
    if isinstance(t, SymmetricTensor):
        return True
    if t.order == 4:
        return isminorsymmetric(t)
    if t.dim == 1:
        return True
    elif t.dim == 2:
        return bool(t[0, 1] == t[1, 0])
    else:
        return bool(t[0, 1] == t[1, 0] and t[0, 2] == t[2, 0] and t[1, 2] == t[2, 1])
