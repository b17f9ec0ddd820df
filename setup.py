"""
Setup script for mixmind-scheduler.

MixMind's adaptive learning core: it decides what a learner practices
next and how each answer moves their state.

1. Spaced repetition - per-item mastery, stability and due times
2. Difficulty adaptation - logistic ELO for user skill and item difficulty
3. Interleaving - new and review content mixed in one session
4. Exercise-type bandit - epsilon-greedy choice of mcq / order / short

The 'mixmind' command plans sessions and records answers against a
SQLite (or any SQLAlchemy async) database.
"""

from setuptools import find_packages, setup

setup(
    name="mixmind-scheduler",
    version="0.1.0",
    description="Adaptive practice scheduling: spaced repetition, ELO difficulty, interleaving and bandits",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="MixMind",
    packages=find_packages(include=["mixmind", "mixmind.*"]),
    package_data={"mixmind": ["data/*.json"]},
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy[asyncio]>=2.0.0",
        "aiosqlite>=0.19.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mixmind=mixmind.cli.main:main",
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
    keywords="learning spaced-repetition elo bandit interleaving education",
)
