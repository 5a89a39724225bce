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
# # `SymmetricTensor`

# %% [markdown]
# A `SymmetricTensor` stores only the independent components of a second order
# tensor with $A_{ij} = A_{ji}$, or of a fourth order tensor with minor
# symmetry, $A_{ijkl} = A_{jikl} = A_{ijlk}$.
#
# | Order | Dimension | Stored components |
# |-------|-----------|-------------------|
# | 2     | 1, 2, 3   | 1, 3, 6           |
# | 4     | 1, 2, 3   | 1, 9, 36          |
#
# Symmetry is a property of the storage layout, not a runtime check: all
# indices of a minor orbit are mapped to the same stored value.

# %%
from __future__ import annotations

# %%
import logging
from typing import ClassVar, List, Tuple
import numpy as np

from scityping.numpy import Array

# %% tags=["active-py"]
from .base import AbstractTensor
from .errors import NotSymmetricError
from . import utils

# %%
__all__ = ["SymmetricTensor", "get_index_representative"]

logger = logging.getLogger(__name__)


# %% [markdown]
# ## Implementation

# %% [markdown]
# ### Indexing utilities

# %% [markdown]
# #### `get_index_representative`
# Each set of indices equivalent under minor symmetry has one representative
# index; this is the index returned by `indep_iter_repindex`, and the one
# passed to functions given to the constructor.
# For a `SymmetricTensor`, it is obtained by sorting each index pair.
#
# This function converts an arbitrary index into its class' representative.
# For example, given the input index `(2,1,0,1)`, it returns `(1,2,0,1)`.

# %%
def get_index_representative(index: Tuple[int, ...]) -> Tuple[int, ...]:
    "Return the representative for the index class to which `index` belongs."
    return sum((tuple(sorted(index[n:n+2])) for n in range(0, len(index), 2)),
               start=())


# %% [markdown]
# ### `SymmetricTensor`

# %% tags=["remove-output"]
class SymmetricTensor(AbstractTensor):
    """
    A tensor storing only its independent components under (minor) symmetry.

    Supports orders 2 and 4.

    Dense data passed to the constructor must already be symmetric, within
    the tolerances `rtol` and `atol`, unless `symmetrize` is True; in that
    case each stored component is the average over its symmetry orbit.
    Data with exactly `n_components` values is copied as is, without any
    check: it must already be in storage order.

    >>> S = SymmetricTensor[2, 2]([[1., 2.], [2., 3.]])
    >>> S.data.tolist()
    [1.0, 2.0, 3.0]
    """
    symmetric   : ClassVar[bool]=True
    data_format : ClassVar[str]="UpperTriangle"
    _data       : Array

    def _validate_options(self, symmetrize: bool=False, rtol: float=1e-5,
                          atol: float=1e-8) -> dict:
        return dict(symmetrize=symmetrize, rtol=rtol, atol=atol)

    def _storage_from_dense(self, array: Array, symmetrize: bool=False,
                            rtol: float=1e-5, atol: float=1e-8) -> Array:
        if symmetrize:
            logger.debug("Symmetrizing dense data for %s.", type(self).__qualname__)
            return np.array([array[index].mean()
                             for index in self.indep_iter_index()])
        if self.order == 2:
            is_symmetric = utils.is_symmetric(array, rtol, atol)
        else:
            is_symmetric = utils.is_minor_symmetric(array, rtol, atol)
        if not is_symmetric:
            raise NotSymmetricError(
                f"Data are not symmetric; cannot create a {type(self).__qualname__}. "
                "Pass `symmetrize=True` to store their symmetric part.")
        # Convert from tuple to list to trigger advanced indexing
        return array[tuple(list(axis) for axis in zip(*self._representatives))]

    @classmethod
    def _identity_component(cls, *index: int):
        if cls.order == 2:
            i, j = index
            return float(i == j)
        else:
            # Symmetric part of δik δjl
            i, j, k, l = index
            return ((i == k and j == l) + (i == l and j == k)) / 2

    @staticmethod
    def _equivalent_index(index: Tuple[int, ...]) -> Tuple[List[int], ...]:
        return utils.minor_symmetrize_index(index)

    @property
    def T(self) -> SymmetricTensor:
        "Transpose of a second order tensor; a symmetric tensor is its own transpose."
        if self.order != 2:
            raise TypeError(f"Transpose is only defined for second order tensors, "
                            f"not order {self.order}.")
        return self
