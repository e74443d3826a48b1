"""
Setup script for GoPro Join
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""

setup(
    name="gopro-join",
    version="1.0.0",
    description="Merge chaptered GoPro recordings into single files with ffmpeg stream copy",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="devos",
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "pyyaml>=6.0",
        "psutil>=5.9.0",
        "tqdm>=4.65.0",
        "ffmpeg-python>=0.2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.3.0",
        ],
        "dev": [
            "pytest>=7.3.0",
            "pytest-cov>=4.1.0",
            "black>=23.3.0",
            "flake8>=6.0.0",
            "mypy>=1.3.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gopro-join=gopro_join.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Multimedia :: Video",
    ],
)
