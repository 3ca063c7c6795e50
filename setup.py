"""
Setup script for studypace.

studypace is the analytics engine of a personal study tracker. It serves
three roles:

1. Pace Statistics - minutes per page, spread and remaining-time estimates
2. Performance Prediction - study volume needed for the next score gain
3. Review Scheduling - graduated spaced-repetition intervals per session

The 'studypace' command exercises the engine against a local SQLite store.
"""

from setuptools import find_packages, setup

setup(
    name="studypace",
    version="1.0.0",
    description="Adaptive learning-analytics engine for study tracking",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["studypace", "studypace.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "studypace=studypace.delivery.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
    ],
    keywords="learning spaced-repetition study-tracking analytics",
)
