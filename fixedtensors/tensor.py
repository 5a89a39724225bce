from typing import ClassVar, List, Tuple

from scityping.numpy import Array

from . import base


__all__ = [
    "Tensor",
    "Vec",
]


class Tensor(base.AbstractTensor):
    """
    A general tensor: every one of the ``dim**order`` components is stored,
    in column-major order (the first index varies fastest).

    Supports orders 1 (vectors, see `Vec`), 2 and 4.

    >>> A = Tensor[2, 2]([0.59, 0.77, 0.57, 0.46])
    >>> float(A[0, 1])
    0.57
    """

    symmetric: ClassVar[bool] = False
    data_format: ClassVar[str] = "Dense"
    _data: Array

    def _validate_options(self) -> dict:
        return {}

    def _storage_from_dense(self, array: Array) -> Array:
        return array.ravel(order="F")

    @classmethod
    def _identity_component(cls, *index: int):
        if cls.order == 2:
            i, j = index
            return float(i == j)
        elif cls.order == 4:
            i, j, k, l = index
            return float(i == k and j == l)
        raise TypeError(f"No identity is defined for tensors of order {cls.order}.")

    @staticmethod
    def _equivalent_index(index: Tuple[int, ...]) -> Tuple[List[int], ...]:
        return tuple([i] for i in index)

    @property
    def T(self) -> "Tensor":
        "Transpose of a second order tensor."
        if self.order != 2:
            raise TypeError(f"Transpose is only defined for second order tensors, "
                            f"not order {self.order}.")
        return type(self).from_function(lambda i, j: self[j, i])


class Vec:
    """
    `Vec[dim]` is an alias of `Tensor[1, dim]`, and `Vec[dim, dtype]` of
    `Tensor[1, dim, dtype]`.

    >>> v = Vec[3]([1., 2., 3.])
    >>> type(v) is Tensor[1, 3]
    True
    """

    def __new__(cls, *args, **kwargs):
        raise TypeError("`Vec` must be specialized before use, e.g. `Vec[3]`.")

    def __class_getitem__(cls, params):
        if not isinstance(params, tuple):
            params = (params,)
        return Tensor[(1,) + params]
