from pathlib import Path

from setuptools import setup, find_packages

# Read the version without importing the package (its dependencies may be missing)
version_ns = {}
exec((Path(__file__).parent / "chainkit" / "version.py").read_text(encoding="utf-8"), version_ns)

setup(
    name="chainkit",
    version=version_ns["__version__"],
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "lark>=1.1.5",
        "typer>=0.9.0",
        "pydantic>=2.0.0",
        "canonicaljson>=2.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "chainkit=chainkit.main:app",
        ],
    },
    python_requires=">=3.10",
)
