"""3D elasticity element for static and dynamic nonlinear elasticity.

Integrates a constitutive model over the reference volume of one element
using isoparametric shape functions and a fixed quadrature rule.

Formulation (per quadrature point q, reference volume V_q):
    dX/dξ = X · ∂N/∂ξ              reference Jacobian (3 × 3)
    ∂N/∂X = ∂N/∂ξ · (dX/dξ)⁻¹      reference gradients of the shape functions
    F     = x · ∂N/∂X              deformation gradient

    Energy:     W   = Σ_q Ψ(F_q) V_q
    Force:      f_a = -Σ_q P(F_q) · ∂N_a/∂X V_q
    Residual:   r   = RESIDUAL_SIGN · f = -f
    Stiffness:  K_aibk = Σ_q A_ijkl ∂N_a/∂X_j ∂N_b/∂X_l V_q,  A = ∂P/∂F
    Mass:       M = Σ_q ρ NᵀN V_q
    Body load:  f_b = Σ_q Nᵀb V_q

Per-node vectors are laid out with node a at offsets [3a, 3a+1, 3a+2] in
element node order.

Reference quantities are computed once with numpy at construction. Every
state-dependent quantity is a torch float64 tensor, so states built from
forward-mode dual positions propagate exact derivatives through the same
code.
"""

import logging
from typing import Optional, Sequence, Type

import numpy as np
import torch

from fem_elasticity.constitutive.base import ConstitutiveModel
from fem_elasticity.core.dual import primal
from fem_elasticity.core.exceptions import ElementConfigurationError, InvertedElementError
from fem_elasticity.core.state import FemState
from fem_elasticity.elements.cache import (
    ElasticityCacheValues,
    ElasticityElementCacheEntry,
    evaluate_quadrature_values,
)
from fem_elasticity.elements.elements import FemElement
from fem_elasticity.elements.quadrature import Quadrature
from fem_elasticity.elements.shape import TETRA4, IsoparametricElement

logger = logging.getLogger(__name__)

# The residual is the negative elastic force (force balance r = -f_elastic).
RESIDUAL_SIGN = -1.0

# |det(dX/dξ)| below this fraction of the product of the Jacobian column
# norms marks a degenerate reference element.
DEGENERATE_TOLERANCE = 1e-12


class ElasticityElement(FemElement):
    """Isoparametric element for 3D hyperelasticity.

    Parameters
    ----------
    element_index : int
        Global index of the element.
    node_indices : Sequence[int]
        Global node indices, one per shape function node.
    density : float
        Mass density in the reference configuration (kg/m³).
    constitutive_model : ConstitutiveModel
        Stress-strain law of the element. The element keeps it for its
        whole lifetime.
    reference_positions : np.ndarray
        Reference node positions (3 × n_nodes).
    shape : type of IsoparametricElement
        Shape function set, TETRA4 by default.
    quadrature : Quadrature, optional
        Integration rule. ``shape.default_quadrature()`` when omitted.

    Raises
    ------
    ElementConfigurationError
        On mismatched cardinalities or dimensions, non-positive density, or a
        degenerate reference element.
    """

    def __init__(
        self,
        element_index: int,
        node_indices: Sequence[int],
        density: float,
        constitutive_model: ConstitutiveModel,
        reference_positions: np.ndarray,
        shape: Type[IsoparametricElement] = TETRA4,
        quadrature: Optional[Quadrature] = None,
    ):
        super().__init__(shape.name, element_index, node_indices, dofs_per_node=3)

        if quadrature is None:
            quadrature = shape.default_quadrature()
        if shape.natural_dimension != quadrature.natural_dimension:
            raise ElementConfigurationError(
                f"{shape.name} has natural dimension {shape.natural_dimension} but the "
                f"quadrature rule has natural dimension {quadrature.natural_dimension}"
            )
        if shape.domain != quadrature.domain:
            raise ElementConfigurationError(
                f"{shape.name} is defined on a {shape.domain} domain, "
                f"the quadrature rule on a {quadrature.domain} domain"
            )
        if shape.natural_dimension != 3:
            raise ElementConfigurationError(
                f"3D elasticity requires volumetric elements, {shape.name} has "
                f"natural dimension {shape.natural_dimension}"
            )
        if len(self.node_indices) != shape.num_nodes:
            raise ElementConfigurationError(
                f"{shape.name} requires {shape.num_nodes} nodes, got {len(self.node_indices)}"
            )
        if not isinstance(constitutive_model, ConstitutiveModel):
            raise ElementConfigurationError(
                f"Unsupported constitutive model: {type(constitutive_model).__name__}"
            )
        if not density > 0:
            raise ElementConfigurationError(f"Density must be positive: {density}")

        reference_positions = np.array(reference_positions, dtype=float)
        if reference_positions.shape != (3, shape.num_nodes):
            raise ElementConfigurationError(
                f"Reference positions must have shape (3, {shape.num_nodes}), "
                f"got {reference_positions.shape}"
            )

        self._quadrature = quadrature
        self._shape = shape(quadrature.points)
        self._density = float(density)
        self._constitutive_model = constitutive_model
        self._reference_positions = reference_positions
        self._cache_entry: Optional[ElasticityElementCacheEntry] = None

        self._precompute_reference_quantities()
        logger.debug(
            "Element %d (%s, %s): %d quadrature points, reference volume %.6e",
            self.element_index,
            self.name,
            type(constitutive_model).__name__,
            self.num_quadrature_points,
            self.volume,
        )

    def _precompute_reference_quantities(self) -> None:
        """Inverse reference Jacobians, reference volumes and ∂N/∂X per quadrature point."""
        X = self._reference_positions
        gradients = self._shape.gradients
        weights = self._quadrature.weights

        dxidX = np.zeros((self.num_quadrature_points, 3, 3))
        dN_dX = np.zeros((self.num_quadrature_points, self.num_nodes, 3))
        volumes = np.zeros(self.num_quadrature_points)

        for q in range(self.num_quadrature_points):
            # J[i,j] = ∂X_i/∂ξ_j
            J = X @ gradients[q]
            det_J = np.linalg.det(J)
            scale = np.prod(np.linalg.norm(J, axis=0))
            if abs(det_J) <= DEGENERATE_TOLERANCE * scale:
                raise ElementConfigurationError(
                    f"Degenerate reference geometry for element {self.element_index} at "
                    f"quadrature point {q}: det(dX/dξ) = {det_J}"
                )
            dxidX[q] = np.linalg.inv(J)
            dN_dX[q] = gradients[q] @ dxidX[q]
            volumes[q] = weights[q] * abs(det_J)

        for array in (dxidX, dN_dX, volumes):
            array.flags.writeable = False
        self._dxidX = dxidX
        self._dN_dX = dN_dX
        self._reference_volumes = volumes

        self._dN_dX_t = torch.as_tensor(dN_dX.copy())
        self._volumes_t = torch.as_tensor(volumes.copy())

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def num_quadrature_points(self) -> int:
        return self._quadrature.num_points

    @property
    def quadrature(self) -> Quadrature:
        return self._quadrature

    @property
    def shape(self) -> IsoparametricElement:
        return self._shape

    @property
    def density(self) -> float:
        return self._density

    @property
    def constitutive_model(self) -> ConstitutiveModel:
        return self._constitutive_model

    @property
    def reference_positions(self) -> np.ndarray:
        return self._reference_positions.copy()

    @property
    def dxidX(self) -> np.ndarray:
        """Inverse reference Jacobian dξ/dX per quadrature point (n_points × 3 × 3)."""
        return self._dxidX

    @property
    def reference_volumes(self) -> np.ndarray:
        """Quadrature weight × |det(dX/dξ)| per quadrature point."""
        return self._reference_volumes

    @property
    def volume(self) -> float:
        return float(self._reference_volumes.sum())

    @property
    def cache_entry(self) -> Optional[ElasticityElementCacheEntry]:
        return self._cache_entry

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def make_element_cache_entry(self) -> ElasticityElementCacheEntry:
        """Creates an ElasticityElementCacheEntry that is compatible with this element."""
        return ElasticityElementCacheEntry(self)

    def attach_cache_entry(self, entry: Optional[ElasticityElementCacheEntry]) -> None:
        """Use ``entry`` for value evaluations; ``None`` detaches the current one.

        Raises
        ------
        ElementConfigurationError
            If the entry belongs to another element or model.
        """
        if entry is not None:
            if entry.element_index != self.element_index:
                raise ElementConfigurationError(
                    f"Cache entry of element {entry.element_index} cannot be attached "
                    f"to element {self.element_index}"
                )
            if not self._constitutive_model.is_compatible(entry.deformation_gradient_cache_entry):
                raise ElementConfigurationError(
                    f"Cache entry type {type(entry.deformation_gradient_cache_entry).__name__} "
                    f"does not match {type(self._constitutive_model).__name__}"
                )
        self._cache_entry = entry

    # -------------------------------------------------------------------------
    # State-dependent quantities
    # -------------------------------------------------------------------------

    def compute_deformation_gradient(self, state: FemState) -> torch.Tensor:
        """Deformation gradient at every quadrature point (n_points × 3 × 3).

        Raises
        ------
        StateAccessError
            If the state lacks positions of a node of this element.
        InvertedElementError
            If det(F) <= 0 at any quadrature point.
        """
        x = state.get_positions(self.node_indices)
        F = x @ self._dN_dX_t

        det_F = torch.linalg.det(primal(F).detach())
        inverted = torch.nonzero(det_F <= 0).flatten()
        if inverted.numel():
            logger.warning(
                "Element %d inverted at %d of %d quadrature points",
                self.element_index,
                inverted.numel(),
                self.num_quadrature_points,
            )
            raise InvertedElementError(
                self.element_index, inverted.tolist(), det_F[inverted].tolist()
            )
        return F

    def _eval_quadrature_values(self, state: FemState) -> ElasticityCacheValues:
        if self._cache_entry is not None and not state.is_dual:
            return self._cache_entry.refresh_and_get(state)
        entry = self._constitutive_model.make_cache_entry(self.num_quadrature_points)
        return evaluate_quadrature_values(self, state, entry)

    def compute_elastic_energy(self, state: FemState) -> torch.Tensor:
        """Elastic potential energy stored in the element (J), a 0-d tensor."""
        values = self._eval_quadrature_values(state)
        return (values.energy_density * self._volumes_t).sum()

    def compute_elastic_force(self, state: FemState) -> torch.Tensor:
        """Elastic forces on the element nodes (3 · n_nodes,)."""
        values = self._eval_quadrature_values(state)
        force = -torch.einsum(
            "q,qij,qaj->ai", self._volumes_t, values.first_piola_stress, self._dN_dX_t
        )
        return force.reshape(-1)

    def compute_residual(self, state: FemState) -> torch.Tensor:
        """Element residual (3 · n_nodes,), the negative of the elastic force."""
        return RESIDUAL_SIGN * self.compute_elastic_force(state)

    def compute_stiffness_matrix(self, state: FemState) -> torch.Tensor:
        """Derivative of the residual with respect to the element positions.

        Returns
        -------
        torch.Tensor
            Stiffness matrix (3 · n_nodes × 3 · n_nodes).
        """
        F = self.compute_deformation_gradient(state)
        A = self._constitutive_model.compute_first_piola_stress_derivative(F)
        K = torch.einsum(
            "q,qijkl,qaj,qbl->aibk", self._volumes_t, A, self._dN_dX_t, self._dN_dX_t
        )
        return K.reshape(self.dofs_count, self.dofs_count)

    # -------------------------------------------------------------------------
    # Reference-configuration quantities
    # -------------------------------------------------------------------------

    @property
    def M(self) -> np.ndarray:
        """Consistent mass matrix.

        M = ∫ρNᵀN dΩ ≈ Σᵢ ρ NᵢᵀNᵢ |J|ᵢ wᵢ

        Returns
        -------
        np.ndarray
            Symmetric mass matrix (n_dofs × n_dofs)
        """
        N = self._shape.values
        M_nodes = self._density * np.einsum("q,qa,qb->ab", self._reference_volumes, N, N)
        M = np.kron(M_nodes, np.eye(3))
        return 0.5 * (M + M.T)

    def body_load(self, body_force: np.ndarray) -> np.ndarray:
        """Body force vector from distributed loads.

        f = ∫Nᵀb dΩ ≈ Σᵢ Nᵢᵀb |J|ᵢ wᵢ

        Parameters
        ----------
        body_force : np.ndarray
            Body force per unit reference volume [bx, by, bz]

        Returns
        -------
        np.ndarray
            Force vector (n_dofs,)
        """
        b = np.asarray(body_force[:3], dtype=float)
        nodal_weights = self._reference_volumes @ self._shape.values
        return np.outer(nodal_weights, b).reshape(-1)

    def __repr__(self):
        return (
            f"<ElasticityElement id={self.element_index} name={self.name} "
            f"model={type(self._constitutive_model).__name__}>"
        )
