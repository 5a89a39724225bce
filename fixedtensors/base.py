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
# # Abstract base class for fixed-size tensors

# %% tags=["remove-cell"]
from __future__ import annotations

# %% tags=["remove-input"]
import logging
import inspect
from abc import ABC, abstractmethod
from numbers import Integral
from typing import (ClassVar, Callable, Dict, Iterator, Generator, List,
                    Optional, Tuple, Union)

import numpy as np

from scityping.numpy import Array, DType

# %% tags=["active-py"]
from . import utils
from .errors import ShapeMismatchError, TensorIndexError

# %%
__all__ = ["AbstractTensor"]

# %% tags=["remove-input"]
logger = logging.getLogger(__name__)


# %% [markdown]
# ## Rationale
#
# Tensors in continuum mechanics are small (at most $3^4 = 81$ components)
# and their shape is known when the code is written. Many of them are
# symmetric, in which case storing every component wastes memory and,
# more importantly, allows the stored data to become non-symmetric.
#
# We therefore store only the independent components, in a fixed-length
# one-dimensional array, while still presenting the tensor with the
# array interface of a general tensor: `A[0,1]` and `A[1,0]` return the
# same stored value.

# %% [markdown]
# ## Usage hints
#
# A tensor *kind* (`Tensor`, `SymmetricTensor`) is first *specialized* with an
# order and a dimension, and optionally an element type:
#
# ```python
# Tensor[2, 3]                 # general 3×3 tensor, element type inferred
# SymmetricTensor[4, 3]        # minor symmetric 3×3×3×3 tensor
# Tensor[2, 3, np.float32]     # converts data to float32
# ```
#
# Specialized classes are created once and cached. Everything which depends
# only on the shape (number of stored components, the index → storage offset
# table and its inverse) is computed at that point, so that indexing an
# instance is a single table lookup. Unsupported shapes are rejected during
# specialization, before any instance exists.
#
# Instances are immutable values: they are created fully formed and every
# operation returns a new tensor.
#
# | Storage kind →  | General               | Symmetric                      |
# |-----------------|-----------------------|--------------------------------|
# | Orders          | 1, 2, 4               | 2, 4                           |
# | Stored components | $d^o$               | $n = d(d+1)/2$ (o=2), $n^2$ (o=4) |
# | Layout          | column-major          | upper triangle, per index pair |

# %% [markdown]
# ### `AbstractTensor`
#
# **Public attributes** (all class attributes, available without data)
# - *order*  → `int`
# - *dim*    → `int`
# - *shape*  → $(d,d,\dotsc)$
# - *n_components* → `int` (number of stored components)
# - *element_type* → `np.dtype` or `None` (if the dtype is inferred from data)
# - *symmetric* → `bool` (storage kind)
#
# **Instance attributes**
# - *dtype*, *ndim*, *size* (= *indep_size*), *dense_size*
# - *data* → read-only view of the stored components
#
# **Construction**
# - `Kind[o, d](f)` – from a function of the multi-index
# - `Kind[o, d](seq)` – from the stored components, or from a dense array
# - `Kind[o, d](A)` – from another tensor of the same shape
# - `Kind[o, d].zero()`, `.one()`, `.rand()`
#
# **Supported indexing**
# - `A[0,1]` → scalar
# - `A[0]`, `A[:,1]` → NumPy array, obtained by indexing the dense tensor
#
# **Arithmetic**
# Element-wise NumPy ufuncs (and thus `+`, `-`, `*`, `/`, …) with scalars or
# tensors of the same shape.

# %% [markdown]
# :::{admonition} List of abstract methods
#
# - *_storage_from_dense*
# - *_validate_options*
# - *_identity_component*
# - *_equivalent_index*
# :::

# %%
class AbstractTensor(np.lib.mixins.NDArrayOperatorsMixin, ABC):
    # NDArrayOperatorsMixin adds methods like __add__, __ge__, by using __array_ufunc__. See https://numpy.org/devdocs/reference/generated/numpy.lib.mixins.NDArrayOperatorsMixin.html

    # Configuration: explicit bounds checks for integer indices.
    # Disabled under `python -O`; may also be set on a subclass.
    check_bounds : ClassVar[bool]=__debug__

    # Set by concrete subclasses
    symmetric    : ClassVar[bool]=False
    data_format  : ClassVar[str]="None"

    # Set by specialization
    order        : ClassVar[Optional[int]]=None
    dim          : ClassVar[Optional[int]]=None
    shape        : ClassVar[Optional[Tuple[int,...]]]=None
    n_components : ClassVar[Optional[int]]=None
    element_type : ClassVar[Optional[DType]]=None
    _kind        : ClassVar[Optional[type]]=None   # The unspecialized concrete class
    _offsets     : ClassVar[Optional[Array]]=None
    _representatives : ClassVar[Tuple[Tuple[int,...],...]]=()

    # Registry of specialized classes, keyed by (kind, order, dim, dtype)
    _specializations: ClassVar[Dict[tuple, type]]={}

    _data        : Array

    def __init__(self, data: Union[Callable, Array, AbstractTensor], **options):
        """
        Parameters
        ----------
        data: May take one of the following forms:
            - Callable: Called as ``data(*index)`` once for each stored
              component, with the canonical representative index of that
              component.
            - Array-like of length `n_components`: Copied as is; it must
              already follow the storage layout.
            - Array-like of shape `shape`: Dense data. Symmetric kinds require
              it to be symmetric (see `SymmetricTensor`).
            - AbstractTensor of the same order and dimension: Converted.

        **options: Additional options accepted by the storage kind.

        Raises
        ------
        TypeError:
          - If the class is not specialized.
          - If data dtype is neither numeric nor bool.
        ShapeMismatchError:
          - If the number of components in `data` does not match the shape.
        """
        self._check_specialized()
        options = self._validate_options(**options)
        if isinstance(data, AbstractTensor):
            storage = self._storage_from_tensor(data, **options)
        elif callable(data):
            storage = self._storage_from_function(data)
        else:
            storage = self._storage_from_data(data, **options)
        self._init_data(storage)

    #### Specialization ####

    def __class_getitem__(cls, params):
        if not isinstance(params, tuple):
            params = (params,)
        if cls._kind is not None:
            raise TypeError(f"{cls.__qualname__} is already specialized.")
        if inspect.isabstract(cls):
            raise TypeError(f"Cannot specialize the abstract class {cls.__qualname__}.")
        if len(params) == 2:
            order, dim = params
            dtype = None
        elif len(params) == 3:
            order, dim, dtype = params
        else:
            raise TypeError(f"Expected {cls.__qualname__}[order, dim] or "
                            f"{cls.__qualname__}[order, dim, dtype]; "
                            f"received {len(params)} parameters.")
        return cls._specialize(order, dim, dtype)

    @classmethod
    def _specialize(cls, order: int, dim: int, dtype: Optional[DType]=None) -> type:
        """
        Return the subclass of `cls` for the given order, dimension and,
        optionally, element type. Subclasses are cached, so that the same
        parameters always return the same class.
        A class specialized with a dtype derives from the one without.
        """
        utils.validate_shape_parameters(order, dim, cls.symmetric)
        order, dim = int(order), int(dim)
        if dtype is not None:
            dtype = cls._validate_dtype(np.dtype(dtype))
        key = (cls, order, dim, dtype)
        try:
            return cls._specializations[key]
        except KeyError:
            pass
        if dtype is None:
            name = f"{cls.__name__}[{order}, {dim}]"
            bases = (cls,)
            attrs = dict(
                order=order, dim=dim,
                shape=utils.tensor_shape(order, dim),
                n_components=utils.n_components(order, dim, cls.symmetric),
                _kind=cls,
                _offsets=utils.offset_table(order, dim, cls.symmetric),
                _representatives=utils.representative_indices(order, dim, cls.symmetric))
        else:
            name = f"{cls.__name__}[{order}, {dim}, {dtype}]"
            bases = (cls._specialize(order, dim),)
            attrs = dict(element_type=dtype)
        attrs.update(__module__=cls.__module__, __qualname__=name)
        spec = type(cls)(name, bases, attrs)
        cls._specializations[key] = spec
        logger.debug("Specialized %s: %s stored components.", name, spec.n_components)
        return spec

    @classmethod
    def _check_specialized(cls):
        if cls._kind is None:
            raise TypeError(
                f"{cls.__qualname__} must be specialized before use, "
                f"e.g. `{cls.__qualname__}[2, 3]`.")

    #### Validation & initialization ####

    @staticmethod
    def _validate_dtype(dtype: DType) -> DType:
        if dtype == object:
            raise TypeError("Tensors do not support the 'object' dtype.")
        elif np.issubdtype(dtype, np.complexfloating):
            raise TypeError(f"Tensor components must be ordered; received {dtype}.")
        elif not any((np.issubdtype(dtype, np.number),
                      np.issubdtype(dtype, bool))):
            raise TypeError(f"Data type is neither numeric nor bool: {dtype}.")
        return dtype

    def _validate_dataarray(self, array: "array-like") -> Array:
        """
        Cast `array` to `ndarray`, and check that it is either of numeric or
        bool type.
        """
        if not isinstance(array, np.ndarray):
            # Reproduce the same range of standardizations NumPy has: Python bools & ints, NumPy types, tuples, lists, etc.
            array = np.asarray(array)
        self._validate_dtype(array.dtype)
        return array

    def _init_data(self, storage: Array):
        """
        Cast the storage array to `element_type`, if there is one, and freeze it.
        This is the only place where `_data` is assigned.
        """
        storage = self._validate_dataarray(storage)
        if storage.shape != (self.n_components,):
            raise ShapeMismatchError(
                f"{type(self).__qualname__} stores {self.n_components} "
                f"components; received storage of shape {storage.shape}.")
        if self.element_type is not None:
            storage = storage.astype(self.element_type)
        else:
            storage = storage.copy()
        storage.flags.writeable = False
        self._data = storage

    @classmethod
    def _from_storage(cls, storage: Array) -> AbstractTensor:
        "Create an instance directly from an array in the storage layout."
        cls._check_specialized()
        obj = cls.__new__(cls)
        obj._init_data(storage)
        return obj

    @classmethod
    def _storage_from_function(cls, f: Callable) -> Array:
        # One call per stored component, never one per symmetric equivalent
        return np.array([f(*index) for index in cls._representatives])

    def _storage_from_data(self, data: "array-like", **options) -> Array:
        array = self._validate_dataarray(data)
        if array.shape == (self.n_components,):
            return array
        elif array.shape == self.shape:
            return self._storage_from_dense(array, **options)
        else:
            raise ShapeMismatchError(
                f"Cannot create a {type(self).__qualname__} from data of shape "
                f"{array.shape}: expected {self.n_components} stored components "
                f"or an array of shape {self.shape}.")

    def _storage_from_tensor(self, tensor: AbstractTensor, **options) -> Array:
        if tensor.shape != self.shape:
            raise ShapeMismatchError(
                f"Cannot convert a tensor of shape {tensor.shape} to "
                f"{type(self).__qualname__}.")
        if type(tensor)._kind is type(self)._kind:
            return tensor._data
        return self._storage_from_dense(tensor.todense(), **options)

    @abstractmethod
    def _validate_options(self, **options) -> dict:
        """
        Return the construction options accepted by this storage kind.
        Unknown options must raise `TypeError`.
        """
        raise NotImplementedError

    @abstractmethod
    def _storage_from_dense(self, array: Array, **options) -> Array:
        """
        Return the storage array for a dense array of shape `self.shape`.
        """
        raise NotImplementedError

    #### Alternative constructors ####

    @classmethod
    def from_function(cls, f: Callable) -> AbstractTensor:
        """
        Build a tensor by evaluating ``f(*index)`` once per stored component.
        For symmetric kinds, `f` is never evaluated on symmetric duplicates.
        """
        cls._check_specialized()
        return cls._from_storage(cls._storage_from_function(f))

    @classmethod
    def zero(cls, dtype: Optional[DType]=None) -> AbstractTensor:
        cls._check_specialized()
        # NB: Don't use `or` here: a dtype with no fields evaluates as False
        if cls.element_type is not None:
            dtype = cls.element_type
        elif dtype is None:
            dtype = np.float64
        return cls._from_storage(np.zeros(cls.n_components, dtype=dtype))

    @classmethod
    def one(cls) -> AbstractTensor:
        "Return the identity tensor of this kind."
        cls._check_specialized()
        return cls.from_function(cls._identity_component)

    @classmethod
    def rand(cls, rng: Union[None, int, np.random.Generator]=None) -> AbstractTensor:
        """
        Return a tensor with independent components drawn uniformly from [0, 1).
        `rng` may be a seed or a NumPy `Generator`.
        """
        cls._check_specialized()
        return cls._from_storage(np.random.default_rng(rng).random(cls.n_components))

    @classmethod
    @abstractmethod
    def _identity_component(cls, *index: int):
        raise NotImplementedError

    #### Dunder methods ####

    def __str__(self):
        return f"{type(self).__qualname__}(order: {self.order}, dim: {self.dim})"

    def __repr__(self):
        s = f"{type(self).__qualname__}(order: {self.order}, dim: {self.dim}, data:"
        data_s = "\n      " + "\n      ".join(str(self.todense()).split("\n"))
        return f"{s}{data_s})"

    def __getitem__(self, key):
        """
        - If `key` is a tuple of `order` integers, return the corresponding
          component (as a NumPy scalar).
        - Otherwise, index the (read-only) dense tensor with `key` and return
          the resulting NumPy array.
        """
        index = key if isinstance(key, tuple) else (key,)
        if len(index) == self.order and all(isinstance(i, Integral) and not isinstance(i, bool)
                                            for i in index):
            if self.check_bounds:
                self._check_index(index)
            return self._data[self._offsets[index]]
        dense = self.todense()
        dense.flags.writeable = False
        return dense[key]

    def __setitem__(self, key, value):
        raise TypeError(f"{type(self).__qualname__} is immutable; "
                        "create a new tensor instead.")

    def __iter__(self):
        "Iterate over the first axis of the dense tensor."
        return iter(self.todense())

    def __eq__(self, other):
        if not isinstance(other, AbstractTensor):
            return NotImplemented
        if self.shape != other.shape:
            return False
        if type(self)._kind is type(other)._kind:
            return bool(np.array_equal(self._data, other._data))
        logger.debug("Comparing %s with %s through their dense forms.",
                     type(self).__qualname__, type(other).__qualname__)
        return bool(np.array_equal(self.todense(), other.todense()))

    def __ne__(self, other):
        eq = self.__eq__(other)
        return eq if eq is NotImplemented else not eq

    def __hash__(self):
        # Consistent with __eq__: equal components hash equally, regardless of dtype or storage kind
        return hash((self.shape, tuple(self.todense().ravel().tolist())))

    def __reduce__(self):
        # Specialized classes are created dynamically, so they can't be pickled by name
        return (_reconstruct, (type(self)._kind, self.order, self.dim,
                               self.element_type, self._data))

    def _check_index(self, index: Tuple[int,...]):
        for axis, i in enumerate(index):
            if not 0 <= i < self.dim:
                raise TensorIndexError(
                    f"Index {index} is out of bounds for axis {axis} of "
                    f"{type(self).__qualname__} (dimension {self.dim}).")

    #### Public attributes & API ####

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def ndim(self) -> int:
        return self.order

    @property
    def data(self) -> Array:
        "The stored components, as a read-only array."
        return self._data

    @property
    def size(self) -> int:
        "Return the number of stored components."
        return self.n_components

    @property
    def indep_size(self) -> int:
        "Return the number of independent components; equal to `size`."
        return self.n_components

    @property
    def dense_size(self) -> int:
        """
        Return the number of elements of the corresponding dense array.
        Equivalent to ``self.todense().size``.
        """
        return self.dim**self.order

    def todense(self) -> Array:
        "Return the tensor as a NumPy array of shape `self.shape`."
        return self._data[self._offsets]

    #### Iterators ####

    @property
    def flat(self) -> Iterator:
        """
        Return an iterator over all components, including symmetric
        equivalents, in the order of NumPy's `flat`.
        """
        return self.todense().flat

    @property
    def flat_index(self) -> Iterator:
        "Indices aligned with `flat`."
        return np.ndindex(*self.shape)

    def indep_iter(self) -> Iterator:
        """
        Return an iterator over the stored components, in storage order.
        """
        return iter(self._data)

    def indep_iter_repindex(self) -> Iterator:
        """
        Return an iterator which yields the canonical representative index
        of each stored component. Can be zipped with `indep_iter`.
        """
        return iter(self._representatives)

    def indep_iter_index(self) -> Generator:
        """
        Return an iterator which yields, for each stored component, all the
        indices which map to it, as a single “advanced index” tuple.
        Can be used to get or set all equivalent components of a dense array.
        """
        for index in self.indep_iter_repindex():
            yield self._equivalent_index(index)

    @staticmethod
    @abstractmethod
    def _equivalent_index(index: Tuple[int,...]) -> Tuple[List[int],...]:
        raise NotImplementedError

    ## Array creation, copy, etc. ##

    def __array__(self, dtype=None, copy=None):  # C.f. ndarray.__array__'s docstring
        return np.asarray(self.todense(), dtype=dtype)

    def astype(self, dtype: DType) -> AbstractTensor:
        "Return a copy with components converted to `dtype`."
        return self._kind._specialize(self.order, self.dim)._from_storage(
            self._data.astype(self._validate_dtype(np.dtype(dtype))))

    # Immutable: in-place operators rebind the name to the result of the
    # binary operator, as for `int` or `tuple`
    def _inplace_op(self, other):
        return NotImplemented
    __iadd__ = __isub__ = __imul__ = __imatmul__ = _inplace_op
    __itruediv__ = __ifloordiv__ = __imod__ = __ipow__ = _inplace_op
    __ilshift__ = __irshift__ = __iand__ = __ixor__ = __ior__ = _inplace_op

    def __copy__(self):
        return self  # Immutable

    def __deepcopy__(self, memo):
        return self

    ## __array_ufunc__ protocol (NEP 13) ##

    def __array_ufunc__(self, ufunc, method, *inputs, **kwargs):
        """
        Element-wise ufuncs (signature ``(),()->()``), applied to the stored
        components. Supported operands are tensors of the same shape and
        scalars.

        - If all tensor operands have the same storage kind, the ufunc is
          applied directly to the storage arrays, and the result has that kind.
        - Otherwise symmetric operands are first converted to general storage.

        In-place operations (``out=``) are not supported, since tensors are
        immutable; augmented assignments (``A += B``) rebind `A` instead.
        Comparing a tensor with a plain array using ``==`` returns False,
        consistent with `__eq__`.
        """
        if method != "__call__" or ufunc.signature is not None or "out" in kwargs:
            return NotImplemented  # EARLY EXIT
        if any(not isinstance(x, AbstractTensor) and np.ndim(x) != 0 for x in inputs):
            if ufunc in (np.equal, np.not_equal) and not kwargs:
                # Reflected `ndarray == tensor`: a tensor never equals a plain array
                return ufunc is np.not_equal  # EARLY EXIT
            return NotImplemented  # EARLY EXIT

        tensors = [x for x in inputs if isinstance(x, AbstractTensor)]
        shapes = {x.shape for x in tensors}
        if len(shapes) > 1:
            raise ShapeMismatchError(
                f"Operands of '{ufunc.__name__}' have different shapes: {sorted(shapes)}.")
        kinds = {type(x)._kind for x in tensors}
        if len(kinds) == 1:
            kind, = kinds
        else:
            kind = next(k for k in kinds if not k.symmetric)
        spec = kind._specialize(self.order, self.dim)

        args = [(x if type(x)._kind is kind else spec(x))._data
                if isinstance(x, AbstractTensor) else x
                for x in inputs]
        result = ufunc(*args, **kwargs)
        if ufunc.nout > 1:
            return tuple(spec._from_storage(r) for r in result)
        return spec._from_storage(result)


# %% [markdown]
# ## Pickling support

# %%
def _reconstruct(kind: type, order: int, dim: int, dtype: Optional[DType],
                 storage: Array) -> AbstractTensor:
    return kind._specialize(order, dim, dtype)._from_storage(storage)
