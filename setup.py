from setuptools import setup, find_packages
import os

# Read version from __init__.py
def get_version():
    """Get version from multispec/__init__.py"""
    init_file = os.path.join(os.path.dirname(__file__), "multispec", "__init__.py")
    with open(init_file, "r") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"\'')
    raise RuntimeError("Unable to find version string.")

# Installation Examples:
# - Base package only: pip install multispec
# - With test tooling: pip install "multispec[dev]"

extras_require = {
    # Development dependencies (CPU-only testing)
    "dev": [
        "pytest>=7.4.0",
        "pytest-cov>=4.1.0",
        "coverage>=7.3.2",
    ],
}

setup(
    name="multispec",
    version=get_version(),
    description="White-light / ultraviolet composite imaging for blister inspection",
    long_description=open("README.md", "r", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Manufacturing",
        "Topic :: Scientific/Engineering :: Image Processing",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    keywords="multispectral, ultraviolet, image-processing, inspection, computer-vision",
    packages=find_packages(include=["multispec", "multispec.*"]),
    install_requires=[
        # Core image processing
        "numpy>=1.26.4",

        # Image I/O and formats
        "tifffile>=2025.6.11",
        "opencv-python>=4.11.0.86",

        # Configuration files
        "PyYAML>=6.0.2",
    ],
    extras_require=extras_require,

    # Console script entry points
    entry_points={
        "console_scripts": [
            "multispec-merge=multispec.__main__:main",
        ],
    },
)
