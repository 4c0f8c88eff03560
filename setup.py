"""
Setup script for nuquiz-core.

NuQuiz core is the deterministic engine behind comparison quizzes over a
knowledge tree (topic -> category -> attribute -> fact). It provides:

1. Hierarchy rules and path resolution for content packs
2. Seeded multiple-select question generation
3. Quiz sessions with strict-match scoring

The 'nuquiz' command offers content-pack validation and question previews.
"""

from setuptools import find_packages, setup

setup(
    name="nuquiz-core",
    version="0.1.0",
    description="Deterministic knowledge-tree quiz generation and scoring",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="NuQuiz",
    packages=find_packages(include=["nuquiz", "nuquiz.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
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
            "nuquiz=nuquiz.cli.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="quiz knowledge-tree education deterministic",
)
