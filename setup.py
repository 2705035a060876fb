from setuptools import setup, find_packages
from pathlib import Path

# Read the contents of the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="attest-cli",
    version="0.3.0",
    description="Rule-based AI-assistance attribution for Git commit history.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["attest_cli", "attest_cli.*"]),
    install_requires=[
        "typer>=0.12.3",
        "rich>=13.7.1",
        "gitpython>=3.1.43",
        "plotille>=5.0.0",
        "pyfiglet>=1.0.2",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "attest=attest_cli.main:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Environment :: Console",
    ],
    python_requires=">=3.11",
)
