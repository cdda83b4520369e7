"""
Example: Building an Element from a YAML Configuration

Loads ``element.yaml``, builds a corotated HEXA8 element on the unit cube and
shears it.
"""

from pathlib import Path

import numpy as np

from fem_elasticity.core.config import ElasticityConfig
from fem_elasticity.core.state import FemState

config = ElasticityConfig.from_yaml(Path(__file__).with_name("element.yaml"))

# Unit cube, one row per node
nodes = np.array(
    [
        [0, 0, 0],
        [1, 0, 0],
        [1, 1, 0],
        [0, 1, 0],
        [0, 0, 1],
        [1, 0, 1],
        [1, 1, 1],
        [0, 1, 1],
    ],
    dtype=float,
)
element = config.build_element(0, range(8), nodes.T)

SHEAR = 1e-3
x = nodes.copy()
x[:, 0] += SHEAR * nodes[:, 2]
state = FemState(x)

energy = float(element.compute_elastic_energy(state))
# Small-strain reference: W = ½ μ γ² V
mu = element.constitutive_model.mu
print(f"Shear energy: {energy:.6e} J (small-strain estimate {0.5 * mu * SHEAR**2:.6e} J)")
print(f"Residual norm: {np.linalg.norm(element.compute_residual(state).numpy()):.6e} N")
