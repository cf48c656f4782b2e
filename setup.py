"""Setup script for modgraph"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
this_directory = Path(__file__).parent
long_description = ""
readme_path = this_directory / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

setup(
    name="modgraph",
    version="0.1.0",
    description="ES module dependency graph analysis, dead code detection and architectural diffing",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Quality Assurance",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=[
        "rich>=13.0.0",
        "typer>=0.9.0",
        "diskcache>=5.6.0",
        "tomli>=2.0.0; python_version < '3.11'",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
        "parsing": [
            "tree-sitter>=0.23.0",
            "tree-sitter-typescript>=0.23.0",
            "tree-sitter-javascript>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "modgraph=modgraph.cli:main",
        ],
    },
    keywords="javascript typescript dependency-graph circular-dependencies dead-code static-analysis",
)
