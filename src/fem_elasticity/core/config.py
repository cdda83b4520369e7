"""
Elasticity Element Configuration Module.

This module provides a YAML-based configuration for building elasticity
elements, so the material law and element discretization can be chosen
without writing Python code.

Example YAML configuration:
    material:
      model: "neo_hookean"
      name: "rubber"
      E: 1.0e6
      nu: 0.4
      rho: 1100.0

    element:
      shape: "TETRA4"
      quadrature_order: 1
      use_cache: false
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np
import yaml

from fem_elasticity.core.material import IsotropicMaterial

# =============================================================================
# Enums
# =============================================================================


class ConstitutiveModelType(str, Enum):
    """Available constitutive models."""

    LINEAR = "linear"
    COROTATED = "corotated"
    SAINT_VENANT_KIRCHHOFF = "saint_venant_kirchhoff"
    NEO_HOOKEAN = "neo_hookean"


class ElementShape(str, Enum):
    """Volumetric shape function sets."""

    TETRA4 = "TETRA4"
    TETRA10 = "TETRA10"
    HEXA8 = "HEXA8"


# =============================================================================
# Configuration Data Classes
# =============================================================================


@dataclass
class MaterialConfig:
    """Material law and its parameters."""

    model: str
    E: float
    nu: float
    rho: float
    name: str = "Material"

    def __post_init__(self):
        if self.model not in [m.value for m in ConstitutiveModelType]:
            raise ValueError(f"Invalid constitutive model: {self.model}")
        self.E = float(self.E)
        self.nu = float(self.nu)
        self.rho = float(self.rho)
        # Raises ElementConfigurationError (a ValueError) on bad parameters
        IsotropicMaterial(name=self.name, E=self.E, nu=self.nu, rho=self.rho)

    def get_material(self) -> IsotropicMaterial:
        return IsotropicMaterial(name=self.name, E=self.E, nu=self.nu, rho=self.rho)

    def build_model(self):
        """Instantiate the configured constitutive model."""
        from fem_elasticity.constitutive import CONSTITUTIVE_MODELS

        return CONSTITUTIVE_MODELS[self.model].from_material(self.get_material())


@dataclass
class ElementConfig:
    """Element discretization."""

    shape: str = ElementShape.TETRA4.value
    quadrature_order: Optional[int] = None
    use_cache: bool = False

    def __post_init__(self):
        if self.shape not in [s.value for s in ElementShape]:
            raise ValueError(f"Invalid element shape: {self.shape}")
        if self.quadrature_order is not None:
            self.quadrature_order = int(self.quadrature_order)
            if self.quadrature_order < 1:
                raise ValueError(f"Quadrature order must be >= 1: {self.quadrature_order}")


# =============================================================================
# Main Configuration Class
# =============================================================================


@dataclass
class ElasticityConfig:
    """Complete configuration of an elasticity element.

    Example usage:
        config = ElasticityConfig.from_yaml("element.yaml")
        element = config.build_element(0, [0, 1, 2, 3], X)
    """

    material: MaterialConfig
    element: ElementConfig = field(default_factory=ElementConfig)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "ElasticityConfig":
        """Load configuration from YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to the YAML configuration file.

        Returns
        -------
        ElasticityConfig
            Validated configuration object.

        Raises
        ------
        FileNotFoundError
            If the YAML file does not exist.
        ValueError
            If the configuration is invalid.
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElasticityConfig":
        """Create configuration from dictionary.

        Raises
        ------
        ValueError
            If a required section or key is missing, or a value is invalid.
        """
        material_data = data.get("material")
        if not material_data:
            raise ValueError("Configuration requires a 'material' section")
        missing = [key for key in ("model", "E", "nu", "rho") if key not in material_data]
        if missing:
            raise ValueError(f"Material configuration is missing: {', '.join(missing)}")

        material = MaterialConfig(
            model=material_data["model"],
            E=material_data["E"],
            nu=material_data["nu"],
            rho=material_data["rho"],
            name=material_data.get("name", "Material"),
        )

        element_data = data.get("element", {}) or {}
        element = ElementConfig(
            shape=element_data.get("shape", ElementShape.TETRA4.value),
            quadrature_order=element_data.get("quadrature_order"),
            use_cache=bool(element_data.get("use_cache", False)),
        )
        return cls(material=material, element=element)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        result = {
            "material": {
                "model": self.material.model,
                "name": self.material.name,
                "E": self.material.E,
                "nu": self.material.nu,
                "rho": self.material.rho,
            },
            "element": {
                "shape": self.element.shape,
                "use_cache": self.element.use_cache,
            },
        }
        if self.element.quadrature_order is not None:
            result["element"]["quadrature_order"] = self.element.quadrature_order
        return result

    def save_yaml(self, yaml_path: Union[str, Path]) -> None:
        """Save configuration to YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to the output YAML file.
        """
        with open(yaml_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def build_model(self):
        return self.material.build_model()

    def build_element(
        self,
        element_index: int,
        node_indices: Sequence[int],
        reference_positions: np.ndarray,
    ):
        """Build an :class:`ElasticityElement` from this configuration.

        The node count must match the configured shape. When ``use_cache`` is
        set, a fresh cache entry is attached to the element.
        """
        from fem_elasticity.elements.elasticity import ElasticityElement
        from fem_elasticity.elements.elements import ElementFactory, make_quadrature

        shape = ElementFactory.get_shape(len(node_indices))
        if shape.name != self.element.shape:
            raise ValueError(
                f"Configured shape {self.element.shape} does not take "
                f"{len(node_indices)} nodes"
            )
        quadrature = None
        if self.element.quadrature_order is not None:
            quadrature = make_quadrature(shape, self.element.quadrature_order)

        element = ElasticityElement(
            element_index=element_index,
            node_indices=node_indices,
            density=self.material.rho,
            constitutive_model=self.build_model(),
            reference_positions=reference_positions,
            shape=shape,
            quadrature=quadrature,
        )
        if self.element.use_cache:
            element.attach_cache_entry(element.make_element_cache_entry())
        return element
