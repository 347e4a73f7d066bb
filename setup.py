"""
treeopt: Optimizer for Indented AST Text

Reads a program tree serialized as indentation-delimited text, applies
constant folding, dead-code elimination and bounded loop unrolling, and
writes the tree back in the same format.
"""

from setuptools import setup, find_packages

setup(
    name="treeopt",
    version="1.0.0",
    description="Constant folding, dead-code elimination and loop unrolling for indented AST text",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="treeopt developers",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[],
    extras_require={
        "dev": [
            "pytest>=7.0",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Compilers",
    ],
)
