from setuptools import setup, find_packages

setup(
    name="legacyequiv",
    version="1.0.0",
    description="Equivalence validation for legacy-to-modern code migrations",
    author="Kalmantic Applied AI Lab",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=[
        "pyyaml>=6.0",
        "jsonschema>=4.20.0",
        "markdown>=3.5.1",
        "click>=8.1.7",
        "tqdm>=4.66.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "legacyequiv=legacyequiv.cli:main",
        ],
    },
    python_requires=">=3.8",
)
