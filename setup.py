"""Setup script for ocihandle."""
from setuptools import find_packages, setup

setup(
    name="ocihandle",
    version="0.1.0",
    description=(
        "Handle lifecycle and error translation layer for the OCI client "
        "library"
    ),
    license="Apache-2.0",
    packages=find_packages(include=["ocihandle", "ocihandle.*"]),
    include_package_data=True,
    package_data={"ocihandle.internal": ["lib/*"]},
    install_requires=[],
    extras_require={
        "test": [
            "pytest",
            "pytest-cov",
        ],
        "dev": [
            "nox",
        ],
    },
    python_requires=">=3.10",
)
