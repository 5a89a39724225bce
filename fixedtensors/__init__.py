from .errors import (TensorError, UnsupportedShapeError, ShapeMismatchError,
                     TensorIndexError, NotSymmetricError)
from .base import AbstractTensor
from .tensor import Tensor, Vec
from .symmetric_tensor import SymmetricTensor

from .symalg import *
