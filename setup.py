"""
Setup script for trivia-engine.

Trivia Engine is the backend of an adaptive trivia quiz. It serves three
roles:

1. Assessment - Rates each user's skill from answer correctness and speed
2. Selection - Builds question batches matched to that skill, unseen first
3. Operations - CLI for loading the question pool and maintenance

The 'trivia' command is the CLI entry point; 'trivia serve' runs the API.
"""

from setuptools import find_packages, setup

setup(
    name="trivia-engine",
    version="0.1.0",
    description="Adaptive trivia assessment engine with a REST API and CLI",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
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
        # API
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            # FastAPI TestClient
            "httpx>=0.25.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "trivia=src.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Framework :: FastAPI",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Games/Entertainment :: Puzzle Games",
    ],
    keywords="trivia quiz adaptive assessment skill-rating",
)
