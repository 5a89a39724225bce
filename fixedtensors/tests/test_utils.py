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
# # Test utilities

# %%
import pytest
import itertools
import math
import numpy as np

# %%
from fixedtensors import utils
from fixedtensors.errors import UnsupportedShapeError

# %% [markdown]
# ## Shape algebra

# %%
def test_n_components():
    # General
    for order, dim in itertools.product((1, 2, 4), (1, 2, 3)):
        assert utils.n_components(order, dim) == dim**order
    assert utils.n_components(2, 3) == 9
    assert utils.n_components(4, 3) == 81
    # Symmetric
    assert [utils.n_components(2, d, True) for d in (1, 2, 3)] == [1, 3, 6]
    assert [utils.n_components(4, d, True) for d in (1, 2, 3)] == [1, 9, 36]
    for d in (1, 2, 3):
        assert utils.n_components(2, d, True) == utils.multicomb(d, 2)
        assert utils.n_components(4, d, True) == utils.multicomb(d, 2)**2

# %%
def test_unsupported_shapes():
    for order, dim, symmetric in [(3, 2, False), (1, 2, True), (2, 4, False),
                                  (4, 0, True), (0, 1, False)]:
        with pytest.raises(UnsupportedShapeError):
            utils.n_components(order, dim, symmetric)
    with pytest.raises(UnsupportedShapeError):
        utils.validate_shape_parameters(True, 2)
    with pytest.raises(UnsupportedShapeError):
        utils.tensor_shape(2, "3")
    # Also a TypeError
    with pytest.raises(TypeError):
        utils.validate_shape_parameters(2, 5)

# %%
def test_tensor_shape():
    assert utils.tensor_shape(1, 3) == (3,)
    assert utils.tensor_shape(2, 2) == (2, 2)
    assert utils.tensor_shape(4, 3) == (3, 3, 3, 3)


# %% [markdown]
# ## Multicombinations

# %%
def test_index_of_multicombination():
    for n in (1, 2, 3, 4):
        for k in (1, 2, 3):
            combs = list(itertools.combinations_with_replacement(range(n), k))
            assert len(combs) == utils.multicomb(n, k)
            for i, c in enumerate(combs):
                assert utils.index_of_multicombination(n, c) == i


# %% [markdown]
# ## Storage offsets
#
# For every supported shape, the offset mapping restricted to canonical
# indices is a bijection onto `range(n_components)`, and the offset table
# agrees with the element-wise mapping.

# %%
@pytest.mark.parametrize("symmetric", [False, True])
def test_offset_bijection(symmetric):
    for order, dim in itertools.product(utils.SUPPORTED_ORDERS[symmetric], utils.SUPPORTED_DIMS):
        n = utils.n_components(order, dim, symmetric)
        reps = utils.representative_indices(order, dim, symmetric)
        assert len(reps) == len(set(reps)) == n
        for k, index in enumerate(reps):
            assert utils.canonical_index(k, order, dim, symmetric) == index
            assert utils.storage_offset(index, dim, symmetric) == k
        table = utils.offset_table(order, dim, symmetric)
        assert table.shape == (dim,)*order
        assert set(table.flat) == set(range(n))
        assert not table.flags.writeable

# %%
def test_dense_offsets():
    assert utils.dense_offset((0, 0), 3) == 0
    assert utils.dense_offset((1, 0), 3) == 1
    assert utils.dense_offset((0, 1), 3) == 3
    assert utils.dense_offset((2, 1, 0, 1), 3) == 2 + 3 + 27
    for offset in range(81):
        assert utils.dense_offset(utils.dense_index(offset, 4, 3), 3) == offset
    assert utils.dense_index(5, 2, 3) == (2, 1)

# %%
def test_symmetric_offsets():
    # Upper triangle, row by row
    assert [utils.symmetric2_offset(i, j, 3) for i, j in
            [(0, 0), (0, 1), (0, 2), (1, 1), (1, 2), (2, 2)]] == list(range(6))
    # Symmetric equivalents share a slot
    for i, j in itertools.product(range(3), repeat=2):
        assert utils.symmetric2_offset(i, j, 3) == utils.symmetric2_offset(j, i, 3)
    assert utils.symmetric2_index(4, 3) == (1, 2)
    # Order 4: composition of the order 2 mapping on each pair
    assert utils.symmetric4_offset(0, 1, 0, 0, 3) == 1
    assert utils.symmetric4_offset(0, 0, 0, 1, 3) == 6
    assert utils.symmetric4_offset(2, 2, 2, 2, 3) == 35
    assert utils.symmetric4_index(35, 3) == (2, 2, 2, 2)
    for index in itertools.product(range(3), repeat=4):
        offsets = {utils.symmetric4_offset(*orbit_index, 3)
                   for orbit_index in utils.minor_orbit(index)}
        assert len(offsets) == 1


# %% [markdown]
# ## Symmetry orbits

# %%
def test_minor_orbit():
    assert utils.minor_orbit((1,)) == ((1,),)
    assert utils.minor_orbit((0, 0)) == ((0, 0),)
    assert sorted(utils.minor_orbit((1, 0))) == [(0, 1), (1, 0)]
    assert sorted(utils.minor_orbit((0, 0, 1, 2))) == [(0, 0, 1, 2), (0, 0, 2, 1)]
    assert sorted(utils.minor_orbit((0, 1, 1, 2))) == [
        (0, 1, 1, 2), (0, 1, 2, 1), (1, 0, 1, 2), (1, 0, 2, 1)]
    with pytest.raises(UnsupportedShapeError):
        utils.minor_orbit((0, 1, 2))

# %%
def test_minor_symmetrize_index():
    A = np.arange(16).reshape(2, 2, 2, 2)
    idx = utils.minor_symmetrize_index((0, 1, 1, 1))
    assert sorted(A[idx].tolist()) == sorted([A[0, 1, 1, 1], A[1, 0, 1, 1]])
    assert utils.minor_symmetrize_index((2, 2)) == ([2], [2])


# %% [markdown]
# ## Array utilities

# %%
def test_is_symmetric():
    assert utils.is_symmetric(np.eye(3))
    assert not utils.is_symmetric(np.arange(9).reshape(3, 3))
    assert not utils.is_symmetric(np.ones((2, 3)))
    assert not utils.is_symmetric(np.ones(3))
    A = np.random.default_rng(0).random((3, 3))
    assert utils.is_symmetric(A + A.T)

# %%
def test_is_minor_symmetric():
    rng = np.random.default_rng(0)
    A = rng.random((3,)*4)
    assert not utils.is_minor_symmetric(A)
    A = A + A.transpose(1, 0, 2, 3)
    assert not utils.is_minor_symmetric(A)
    A = A + A.transpose(0, 1, 3, 2)
    assert utils.is_minor_symmetric(A)
    assert not utils.is_minor_symmetric(np.ones((3, 3, 3, 2)))
    assert math.isclose(A[0, 1, 2, 0], A[1, 0, 0, 2])
