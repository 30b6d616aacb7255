"""
prebake: Build-Time Evaluation of Marked Python Functions

Moves deterministic, expensive computation from runtime into the build:
1. Functions marked with @compile_time_executor are found in the host sources
2. Their bodies are evaluated once, in an isolated sandbox module
3. A sibling <name>_compile_time function returning the result is generated
"""

from setuptools import setup, find_packages

setup(
    name="prebake",
    version="1.0.0",
    description="Build-time evaluation of marked Python functions",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    author="prebake developers",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    install_requires=[],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-benchmark>=4.0",
        ],
        "test": [
            "pytest>=7.0",
            "pytest-benchmark>=4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "prebake = prebake.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Build Tools",
        "Topic :: Software Development :: Code Generators",
    ],
)
