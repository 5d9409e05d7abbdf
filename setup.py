"""
Vira Package Setup

Install with: pip install -e .
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding='utf-8')

setup(
    name="vira",
    version="0.1.0",
    author="Vira Team",
    description="Bytecode compiler and stack virtual machine for the Vira scripting language",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["compiler", "compiler.*", "vm", "vm.*", "cli", "cli.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Compilers",
        "Topic :: Software Development :: Interpreters",
    ],
    keywords="scripting, bytecode, compiler, virtual-machine",
    entry_points={
        "console_scripts": [
            "virac=cli.virac:main",
            "vira-vm=cli.runner:main",
        ],
    },
)
