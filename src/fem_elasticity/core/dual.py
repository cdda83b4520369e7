"""Forward-mode sensitivities on top of ``torch.autograd.forward_ad``.

A dual tensor carries a primal value and one tangent. Every state-dependent
computation in the kernel is written with torch operations, so feeding a
state built from dual positions yields exact directional derivatives of the
outputs with no separate code path.

Example
-------
>>> with dual_level():
...     state = make_dual_state(q, dq)
...     r = element.compute_residual(state)
...     dr = tangent(r)          # == K @ dq_local
"""

from contextlib import contextmanager
from typing import Callable

import numpy as np
import torch
import torch.autograd.forward_ad as fwAD

from fem_elasticity.core.state import ArrayLike, FemState


@contextmanager
def dual_level():
    """Open a forward-mode dual level. Dual tensors are only valid inside it."""
    with fwAD.dual_level():
        yield


def _as_tensor(x: ArrayLike) -> torch.Tensor:
    if isinstance(x, torch.Tensor):
        return x.to(torch.float64)
    return torch.as_tensor(np.asarray(x, dtype=np.float64))


def make_dual(x: ArrayLike, dx: ArrayLike) -> torch.Tensor:
    """Pair a value with a tangent of the same shape."""
    x = _as_tensor(x)
    dx = _as_tensor(dx).reshape(x.shape)
    return fwAD.make_dual(x, dx)


def make_dual_state(q: ArrayLike, dq: ArrayLike) -> FemState:
    """State whose positions carry the tangent ``dq``.

    Must be called inside :func:`dual_level`.
    """
    q = _as_tensor(q)
    if q.ndim == 2:
        q = q.reshape(-1)
    return FemState(make_dual(q, dq))


def primal(x: torch.Tensor) -> torch.Tensor:
    return fwAD.unpack_dual(x).primal


def tangent(x: torch.Tensor) -> torch.Tensor:
    """Tangent of ``x``; zeros when ``x`` carries none."""
    t = fwAD.unpack_dual(x).tangent
    if t is None:
        return torch.zeros_like(primal(x))
    return t


def forward_jacobian(
    fn: Callable[[torch.Tensor], torch.Tensor], x: torch.Tensor
) -> torch.Tensor:
    """Jacobian of ``fn`` at ``x`` by one forward pass per input component.

    The result has shape ``fn(x).shape + x.shape``. Only the primal part of
    ``x`` is used; nested dual levels are not supported by torch.
    """
    x = primal(x).detach()
    columns = []
    with fwAD.dual_level():
        for k in range(x.numel()):
            seed = torch.zeros(x.numel(), dtype=x.dtype)
            seed[k] = 1.0
            out = fn(fwAD.make_dual(x, seed.reshape(x.shape)))
            columns.append(tangent(out))
    jac = torch.stack(columns, dim=-1)
    return jac.reshape(*jac.shape[:-1], *x.shape)


def pointwise_forward_jacobian(
    fn: Callable[[torch.Tensor], torch.Tensor], X: torch.Tensor
) -> torch.Tensor:
    """Jacobian of a map applied independently to each matrix of a batch.

    ``X`` has shape (..., m, n) and ``fn`` maps it to (..., p, r) without
    mixing batch entries. The result has shape (..., p, r, m, n), one pass
    per matrix component instead of one per batch component.
    """
    X = primal(X).detach()
    m, n = X.shape[-2:]
    columns = []
    with fwAD.dual_level():
        for k in range(m):
            for l in range(n):
                seed = torch.zeros_like(X)
                seed[..., k, l] = 1.0
                columns.append(tangent(fn(fwAD.make_dual(X, seed))))
    jac = torch.stack(columns, dim=-1)
    return jac.reshape(*jac.shape[:-1], m, n)
