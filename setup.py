from setuptools import find_packages, setup

setup(
    name="fem-elasticity",
    version="0.1.0",
    description="Per-element kernel for nonlinear 3D elasticity",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "torch",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
