"""Read-only container of the current nodal positions.

The state is the boundary between the kernel and whatever owns the global
simulation data. Elements only read from it.
"""

import itertools
from typing import Sequence, Union

import numpy as np
import torch
import torch.autograd.forward_ad as fwAD

from fem_elasticity.core.exceptions import StateAccessError

ArrayLike = Union[np.ndarray, torch.Tensor, Sequence[float]]

# Shared by every state so that versions never collide across instances.
_VERSIONS = itertools.count(1)


def _as_positions(q: ArrayLike) -> torch.Tensor:
    """Private float64 copy of the positions; clone keeps forward-mode tangents."""
    if isinstance(q, torch.Tensor):
        q = q.to(torch.float64).clone()
    else:
        q = torch.tensor(np.array(q, dtype=np.float64))
    if q.ndim == 2:
        if q.shape[1] != 3:
            raise ValueError(f"Positions must have shape (N, 3), got {tuple(q.shape)}")
        q = q.reshape(-1)
    if q.ndim != 1 or q.shape[0] % 3 != 0:
        raise ValueError(f"Generalized positions must have length 3N, got shape {tuple(q.shape)}")
    return q


class FemState:
    """Generalized positions ``q`` of all nodes, laid out as [x0, y0, z0, x1, ...].

    Parameters
    ----------
    q : array_like
        Flat array of length 3N or an (N, 3) array of node positions.
        A torch dual tensor is accepted inside a forward-mode dual level.

    Attributes
    ----------
    version : int
        Tag that changes every time the positions change. Versions are
        unique across all states of the process.
    """

    def __init__(self, q: ArrayLike):
        self._q = _as_positions(q)
        self._version = next(_VERSIONS)

    @property
    def q(self) -> torch.Tensor:
        """Copy of the positions. Change them through :meth:`set_q`."""
        return self._q.clone()

    @property
    def version(self) -> int:
        return self._version

    @property
    def num_nodes(self) -> int:
        return self._q.shape[0] // 3

    @property
    def is_dual(self) -> bool:
        """True when the positions carry forward-mode tangents."""
        return fwAD.unpack_dual(self._q).tangent is not None

    def set_q(self, q: ArrayLike) -> None:
        """Replace the positions and bump the version."""
        self._q = _as_positions(q)
        self._version = next(_VERSIONS)

    def get_positions(self, node_indices: Sequence[int]) -> torch.Tensor:
        """Positions of the given nodes as a 3 x n matrix.

        Raises
        ------
        StateAccessError
            If any node index is outside the state.
        """
        indices = np.asarray(node_indices, dtype=np.int64)
        missing = indices[(indices < 0) | (indices >= self.num_nodes)]
        if missing.size:
            raise StateAccessError(missing, self.num_nodes)
        return self._q.reshape(-1, 3)[torch.as_tensor(indices)].T

    def __repr__(self):
        return f"<FemState nodes={self.num_nodes} version={self.version} dual={self.is_dual}>"
