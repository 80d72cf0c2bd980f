"""Fixed-length state vector.

Provides the ``FixedVector`` class: an ordered sequence of exactly ``N``
floats whose length is fixed at construction.  All arithmetic is
componentwise and preserves the length.  Vectors of different lengths can
be joined with :meth:`FixedVector.concat`, which pads with leading zeros
or truncates the tail to hit the requested length.

Storage is a 1-D JAX array, so a ``FixedVector`` behaves as a value:
arithmetic returns new vectors and item assignment rebinds only the
vector it is applied to.  Slicing is the exception: ``v[a:b]`` returns a
view that reads from and writes back into ``v``.  The class is
registered as a JAX pytree with the data array as the sole leaf, so
states pass through ``jax.jit`` and ``jax.lax`` control flow unchanged.
"""

from __future__ import annotations

from collections.abc import Iterator

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from twobody.config import get_dtype


class FixedVector:
    """Ordered, fixed-length vector of floats.

    Args:
        values: 1-D sequence or array of components.

    Raises:
        ValueError: If *values* is not one-dimensional.

    Examples:
        ```python
        from twobody.vector import FixedVector
        v = FixedVector([1.0, 2.0]) + FixedVector([3.0, 4.0])
        str(v)  # '4.0,6.0'
        ```
    """

    __slots__ = ("_data",)

    def __init__(self, values: ArrayLike) -> None:
        data = jnp.asarray(values, dtype=get_dtype())
        if data.ndim != 1:
            raise ValueError(f"FixedVector requires a 1-D input, got shape {data.shape}")
        self._data = data

    @classmethod
    def _from_internal(cls, data: Array) -> FixedVector:
        """Wrap a raw array without coercion or validation.

        Used by pytree unflatten, where leaves may be tracers or
        placeholder objects rather than concrete arrays.
        """
        obj = object.__new__(cls)
        obj._data = data
        return obj

    @classmethod
    def zeros(cls, n: int) -> FixedVector:
        """Return a vector of ``n`` zeros."""
        return cls._from_internal(jnp.zeros(n, dtype=get_dtype()))

    @classmethod
    def from_array(cls, values: ArrayLike) -> FixedVector:
        """Build a vector from any array-like (alias of the constructor)."""
        return cls(values)

    @staticmethod
    def fill_from(target: FixedVector, start: int, source: FixedVector) -> None:
        """Copy ``source`` into ``target`` beginning at index ``start``.

        Copying stops at the end of ``target`` or ``source``, whichever
        comes first.  Components of ``target`` outside the copied range
        are left untouched.

        Args:
            target: Vector written in place.
            start: First index of ``target`` to overwrite.
            source: Vector supplying the values.
        """
        stop = min(start + len(source), len(target))
        if stop <= start:
            return
        target._data = target._data.at[start:stop].set(
            source._data[: stop - start].astype(target._data.dtype)
        )

    @classmethod
    def concat(cls, vec1: FixedVector, vec2: FixedVector, n: int) -> FixedVector:
        """Join two vectors into a new vector of length ``n``.

        - ``len(vec1) + len(vec2) == n``: plain concatenation.
        - ``len(vec1) + len(vec2) < n``: the result is left-padded with
          ``n - len(vec1) - len(vec2)`` zeros.
        - ``len(vec1) + len(vec2) > n``: the concatenation is truncated to
          its first ``n`` components.

        Args:
            vec1: Leading vector.
            vec2: Trailing vector.
            n: Length of the result.

        Returns:
            FixedVector: Vector of length ``n``.

        Examples:
            ```python
            v1 = FixedVector([1.0, 2.0])
            v2 = FixedVector([3.0, 4.0, 5.0])
            FixedVector.concat(v1, v2, 6)  # [0, 1, 2, 3, 4, 5]
            FixedVector.concat(v1, v2, 3)  # [1, 2, 3]
            ```
        """
        result = cls.zeros(n)
        start = max(n - len(vec1) - len(vec2), 0)
        cls.fill_from(result, start, vec1)
        cls.fill_from(result, start + len(vec1), vec2)
        return result

    # Properties

    @property
    def data(self) -> Array:
        """Underlying 1-D array."""
        return self._data

    def copy(self) -> FixedVector:
        """Return an independent copy."""
        return FixedVector._from_internal(self._data)

    # Container protocol

    def __len__(self) -> int:
        return self._data.shape[0]

    def __iter__(self) -> Iterator[Array]:
        for i in range(len(self)):
            yield self._data[i]

    def __getitem__(self, key):
        if isinstance(key, slice):
            return _SliceView(self, key)
        return self._data[key]

    def __setitem__(self, key, value) -> None:
        if isinstance(key, slice):
            width = len(range(*key.indices(len(self))))
            values = value._data if isinstance(value, FixedVector) else jnp.asarray(value)
            if values.ndim != 1 or values.shape[0] != width:
                raise ValueError(
                    f"Cannot assign {values.shape} values to a slice of length {width}"
                )
            self._data = self._data.at[key].set(values.astype(self._data.dtype))
        else:
            self._data = self._data.at[key].set(value)

    # Arithmetic

    def _check_length(self, other: FixedVector) -> None:
        if len(self) != len(other):
            raise ValueError(f"Length mismatch: {len(self)} != {len(other)}")

    def __add__(self, other: FixedVector) -> FixedVector:
        if not isinstance(other, FixedVector):
            return NotImplemented
        self._check_length(other)
        return FixedVector._from_internal(self._data + other._data)

    def __sub__(self, other: FixedVector) -> FixedVector:
        if not isinstance(other, FixedVector):
            return NotImplemented
        self._check_length(other)
        return FixedVector._from_internal(self._data - other._data)

    def __mul__(self, scalar: ArrayLike) -> FixedVector:
        if isinstance(scalar, FixedVector):
            return NotImplemented
        return FixedVector._from_internal(self._data * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: ArrayLike) -> FixedVector:
        if isinstance(scalar, FixedVector):
            return NotImplemented
        return FixedVector._from_internal(self._data / scalar)

    def __neg__(self) -> FixedVector:
        return FixedVector._from_internal(-self._data)

    def __abs__(self) -> Array:
        return magnitude(self)

    # String representations

    def __str__(self) -> str:
        return ",".join(str(float(x)) for x in self._data)

    def __repr__(self) -> str:
        return f"FixedVector([{', '.join(f'{float(x):.6g}' for x in self._data)}])"


class _SliceView(FixedVector):
    """Sub-range of another vector sharing its storage.

    Reads always see the parent's current components.  Writes go through
    :meth:`FixedVector.__setitem__` on the parent, so the parent's length
    is preserved.  Use :meth:`copy` to detach.
    """

    __slots__ = ("_base", "_key")

    def __init__(self, base: FixedVector, key: slice) -> None:
        self._base = base
        self._key = key

    @property
    def _data(self) -> Array:
        return self._base._data[self._key]

    @_data.setter
    def _data(self, value: Array) -> None:
        self._base[self._key] = value


def magnitude(v: FixedVector | ArrayLike) -> Array:
    """Euclidean norm ``sqrt(sum(v[i]**2))`` of a vector.

    Args:
        v: A :class:`FixedVector` or 1-D array.

    Returns:
        jax.Array: Scalar magnitude.
    """
    data = v.data if isinstance(v, FixedVector) else jnp.asarray(v, dtype=get_dtype())
    return jnp.sqrt(jnp.sum(data * data))


# Register as JAX pytree
for _cls in (FixedVector, _SliceView):
    jax.tree_util.register_pytree_node(
        _cls,
        lambda v: ((v._data,), None),
        lambda _, children: FixedVector._from_internal(children[0]),
    )
del _cls
