"""Setup script for capsule-migrate"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
this_directory = Path(__file__).parent
long_description = ""
readme_path = this_directory / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

setup(
    name="capsule-migrate",
    version="0.1.0",
    author="Capsule Migrate Contributors",
    author_email="",
    description="Analyze, regenerate, validate and report on capsule migrations",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/capsule-migrate",
    project_urls={
        "Bug Tracker": "https://github.com/yourusername/capsule-migrate/issues",
        "Source Code": "https://github.com/yourusername/capsule-migrate",
    },
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Code Generators",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0.0",
        "typer>=0.9.0,<0.26",
        "rich>=13.0.0",
        "tree-sitter>=0.23.0",
        "tree-sitter-python>=0.23.0",
        "tomli>=2.0.0; python_version<'3.11'",
        "mypy>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "capsule-migrate=capsule_migrate.cli:main",
        ],
    },
    keywords="migration code-generation static-analysis tree-sitter capsules",
)
