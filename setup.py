from setuptools import setup, find_packages

# Read version from __init__.py
with open("aliasstore/__init__.py", "r") as f:
    for line in f:
        if line.startswith("__version__"):
            version = line.split("=")[1].strip().strip('"').strip("'")
            break

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="aliasstore",
    version=version,
    author="trissim",
    author_email="tristan.simas@mail.mcgill.ca",
    description="Random access storage handles for aliases that resolve in the background",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["aliasstore", "aliasstore.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.20.0",
        "pydantic>=2.0,<3",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "coverage>=7.3.2",
            "black",
            "flake8",
        ],
    },
)
