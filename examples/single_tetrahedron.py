"""
Example: Single Neo-Hookean Tetrahedron

Stretches one TETRA4 element and prints its energy, residual, stiffness and
mass matrix, then checks the stiffness against a forward-mode directional
derivative of the residual.
"""

import logging

import numpy as np

from fem_elasticity.constitutive import NeoHookeanModel
from fem_elasticity.core.dual import dual_level, make_dual_state, tangent
from fem_elasticity.core.material import IsotropicMaterial
from fem_elasticity.core.state import FemState
from fem_elasticity.elements import ElementFactory

logging.basicConfig(level=logging.DEBUG)

# Material definition (rubber)
material = IsotropicMaterial(name="Rubber", E=1.0e6, nu=0.4, rho=1100)
model = NeoHookeanModel.from_material(material)

# Unit tetrahedron, one column per node
X = np.array(
    [
        [0.0, 1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ]
)

element = ElementFactory.get_element(
    element_index=0,
    node_indices=(0, 1, 2, 3),
    density=material.rho,
    constitutive_model=model,
    reference_positions=X,
)
element.attach_cache_entry(element.make_element_cache_entry())

print("=" * 70)
print(f"Element: {element}")
print(f"  Reference volume: {element.volume:.6f} m³")
print(f"  Quadrature points: {element.num_quadrature_points}")
print("=" * 70)

# 10 % stretch along x
STRETCH = 1.1
x = X.T * np.array([STRETCH, 1.0, 1.0])
state = FemState(x)

energy = element.compute_elastic_energy(state)
residual = element.compute_residual(state)
print(f"\nElastic energy: {float(energy):.6e} J")
print("Residual [N]:")
for node, r in zip(element.node_indices, residual.numpy().reshape(-1, 3)):
    print(f"  node {node}: {r}")

K = element.compute_stiffness_matrix(state).numpy()
print(f"\nStiffness matrix: shape {K.shape}, symmetric: {np.allclose(K, K.T)}")

M = element.M
print(f"Mass matrix: total mass {M.sum() / 3:.4f} kg (expected {material.rho * element.volume:.4f})")

# Directional derivative of the residual along a random perturbation
dq = np.random.default_rng(0).standard_normal(x.size)
with dual_level():
    dr = tangent(element.compute_residual(make_dual_state(x, dq))).numpy()
print(f"\nmax |K·dq - dr| = {np.abs(K @ dq - dr).max():.3e}")
