"""Setup pour payroll_engine."""

from setuptools import setup, find_packages

setup(
    name="payroll_engine",
    version="1.0.0",
    description="Moteur de calcul de paie allemande (Lohnsteuer, Sozialversicherung, Branchenzuschlaege)",
    author="AJ",
    python_requires=">=3.10",
    packages=find_packages(exclude=("tests", "tests.*")),
    entry_points={
        "console_scripts": [
            "payroll-engine=payroll_engine.main:main",
        ],
    },
    install_requires=[
        "pydantic>=2.0",
        "python-dateutil>=2.8.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
)
