# -*- coding: utf-8 -*-
# ---
# jupyter:
#   jupytext:
#     notebook_metadata_filter: -jupytext.text_representation.jupytext_version,-kernelspec
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
# ---

# %% [markdown]
# # Testing the symmetry decomposition

# %%
import pytest
import numpy as np

import fixedtensors as ft
from fixedtensors import Tensor, SymmetricTensor, Vec
from fixedtensors import utils

# %%
DIMS = (1, 2, 3)

def random_tensors(Kind, order, n=3):
    rng = np.random.default_rng(order)
    for dim in DIMS:
        for _ in range(n):
            yield Kind[order, dim].rand(rng)


# %% [markdown]
# ## Second order tensors
#
# $A = \mathrm{symmetric}(A) + \mathrm{skew}(A)$

# %%
def test_decomposition_order2():
    for A in random_tensors(Tensor, 2):
        S = ft.symmetric(A)
        W = ft.skew(A)
        assert type(S) is SymmetricTensor[2, A.dim]
        assert type(W) is Tensor[2, A.dim]
        assert np.allclose((S + W).todense(), A.todense())
        assert np.allclose(W.todense(), -W.todense().T)
        assert ft.symmetric(S) == S
        assert ft.symmetric(ft.symmetric(A)) == ft.symmetric(A)

# %%
def test_symmetric_input_order2():
    for S in random_tensors(SymmetricTensor, 2):
        assert ft.symmetric(S) is S
        W = ft.skew(S)
        assert type(W) is Tensor[2, S.dim]
        assert W == Tensor[2, S.dim].zero()
        assert ft.transpose(S) is S

# %% [markdown]
# Concrete example

# %%
def test_decomposition_2x2():
    A = Tensor[2, 2](np.array([[0.59, 0.57],
                               [0.77, 0.46]]))
    S = ft.symmetric(A)
    W = ft.skew(A)
    assert np.allclose(S.todense(), [[0.59, 0.67],
                                     [0.67, 0.46]])
    assert np.allclose(W.todense(), [[0.,   -0.10],
                                     [0.10,  0.  ]])
    # Diagonal components are passed through unchanged
    assert S[0, 0] == 0.59 and S[1, 1] == 0.46
    assert S.data.shape == (3,)

# %%
def test_integer_input():
    A = Tensor[2, 2]([1, 3, 2, 4])  # [[1, 2], [3, 4]]
    S = ft.symmetric(A)
    assert S[0, 1] == 2.5
    assert np.array_equal(ft.skew(A).todense(), [[0, -0.5], [0.5, 0]])


# %% [markdown]
# ## Fourth order tensors

# %%
def test_minorsymmetric():
    for T in random_tensors(Tensor, 4):
        M = ft.minorsymmetric(T)
        assert type(M) is SymmetricTensor[4, T.dim]
        assert ft.isminorsymmetric(M)
        assert ft.isminorsymmetric(Tensor[4, T.dim](M))
        assert ft.minorsymmetric(M) is M
        assert np.allclose(ft.minorsymmetric(Tensor[4, T.dim](M)).todense(), M.todense())
        assert ft.symmetric(T) == M
        # Average over the minor orbit
        Td = T.todense()
        expected = (Td + Td.transpose(1, 0, 2, 3) + Td.transpose(0, 1, 3, 2)
                    + Td.transpose(1, 0, 3, 2)) / 4
        assert np.allclose(M.todense(), expected)

# %%
def test_minorsymmetric_pass_through():
    T = Tensor[4, 2](np.arange(16.))
    M = ft.minorsymmetric(T)
    for i in range(2):
        for k in range(2):
            assert M[i, i, k, k] == T[i, i, k, k]

# %%
def test_majorsymmetric():
    for Kind in (Tensor, SymmetricTensor):
        for T in random_tensors(Kind, 4):
            M = ft.majorsymmetric(T)
            assert type(M) is Tensor[4, T.dim]
            assert ft.ismajorsymmetric(M)
            assert ft.majorsymmetric(M) == M
            Td = T.todense()
            assert np.allclose(M.todense(), (Td + Td.transpose(2, 3, 0, 1)) / 2)
    # A minor symmetric tensor keeps its minor symmetry
    S = SymmetricTensor[4, 3].rand(0)
    assert ft.isminorsymmetric(ft.majorsymmetric(S))

# %%
def test_transposes_order4():
    T = Tensor[4, 3].rand(0)
    Td = T.todense()
    assert np.array_equal(ft.minortranspose(T).todense(), Td.transpose(1, 0, 3, 2))
    assert np.array_equal(ft.majortranspose(T).todense(), Td.transpose(2, 3, 0, 1))
    S = SymmetricTensor[4, 3].rand(0)
    assert ft.minortranspose(S) is S
    St = ft.majortranspose(S)
    assert type(St) is SymmetricTensor[4, 3]
    assert np.array_equal(St.todense(), S.todense().transpose(2, 3, 0, 1))
    assert ft.majortranspose(St) == S


# %% [markdown]
# ## Symmetry checks

# %%
def test_issymmetric_symmetric_storage():
    for order in (2, 4):
        for S in random_tensors(SymmetricTensor, order):
            assert ft.issymmetric(S)
    assert ft.isminorsymmetric(SymmetricTensor[4, 3].rand(0))

# %%
def test_issymmetric_general():
    # dim 1: always symmetric
    assert ft.issymmetric(Tensor[2, 1]([5.]))
    # dim 2
    assert ft.issymmetric(Tensor[2, 2]([[1., 2.], [2., 3.]]))
    assert not ft.issymmetric(Tensor[2, 2]([[1., 2.], [-2., 3.]]))
    # dim 3
    assert ft.issymmetric(Tensor[2, 3]([[1., 2., 3.],
                                        [2., 4., 5.],
                                        [3., 5., 6.]]))
    assert ft.issymmetric(Tensor[2, 3].one())
    asym = Tensor[2, 3]([[1., 2., 3.],
                         [2., 4., 5.],
                         [3., 7., 6.]])
    assert not ft.issymmetric(asym)
    assert not ft.issymmetric(Tensor[2, 3](np.arange(9.)))
    assert ft.issymmetric(Tensor[2, 3](ft.symmetric(asym)))
    # Order 4: minor symmetry
    T = Tensor[4, 3].rand(0)
    assert not ft.issymmetric(T)
    assert ft.issymmetric(Tensor[4, 3](ft.minorsymmetric(T)))
    # Exact comparison
    assert not ft.issymmetric(Tensor[2, 2]([[1., 2.], [2. + 1e-12, 3.]]))

# %%
def test_ismajorsymmetric():
    assert ft.ismajorsymmetric(Tensor[4, 2].one())
    assert ft.ismajorsymmetric(SymmetricTensor[4, 2].one())
    assert not ft.ismajorsymmetric(Tensor[4, 2](np.arange(16.)))
    assert not ft.ismajorsymmetric(SymmetricTensor[4, 2](np.arange(9.)))
    # Minor symmetric but not major symmetric: S[0,0,1,1] != S[1,1,0,0]
    T = Tensor[4, 2](lambda i, j, k, l: float(i == j == 0 and k == l == 1))
    assert ft.isminorsymmetric(T)
    assert not ft.ismajorsymmetric(T)


# %% [markdown]
# ## Unsupported orders

# %%
def test_order_errors():
    v = Vec[3]([1., 2., 3.])
    A = Tensor[2, 3].rand(0)
    T = Tensor[4, 3].rand(0)
    for f in (ft.symmetric, ft.issymmetric, ft.skew, ft.transpose):
        with pytest.raises(TypeError):
            f(v)
    for f in (ft.skew, ft.transpose):
        with pytest.raises(TypeError):
            f(T)
    for f in (ft.minorsymmetric, ft.majorsymmetric, ft.isminorsymmetric,
              ft.ismajorsymmetric, ft.minortranspose, ft.majortranspose):
        with pytest.raises(TypeError):
            f(A)
    with pytest.raises(TypeError):
        ft.symmetric(np.eye(3))

# %% [markdown]
# The fourth order checks only scan the region $j \leq i$, $l \leq k$; a
# violation lying entirely outside of it goes unnoticed. The array utilities
# provide complete checks.

# %%
def test_scan_region_limits():
    T = Tensor[4, 2](lambda i, j, k, l: float((i, j, k, l) == (0, 1, 0, 1)))
    assert ft.isminorsymmetric(T)
    assert not utils.is_minor_symmetric(T.todense())
    T = Tensor[4, 2](lambda i, j, k, l: float((i, j, k, l) == (0, 1, 0, 0)))
    assert ft.ismajorsymmetric(T)
    assert not np.array_equal(T.todense(), T.todense().transpose(2, 3, 0, 1))
    # The same violation inside the scanned region is detected
    assert not ft.isminorsymmetric(Tensor[4, 2](lambda i, j, k, l: float((i, j, k, l) == (1, 0, 1, 0))))
