# -*- coding: utf-8 -*-
import setuptools
import pathlib
import site
import sys

# odd bug with develop (editable) installs, see: https://github.com/pypa/pip/issues/7953
site.ENABLE_USER_SITE = "--user" in sys.argv[1:]

required = [
    "numpy",
    "matplotlib>=3.4.0",
    "mashumaro",
    "loguru",
    "rich>=13.0.0",
    "click>=8.0.0",
]

extras = {
    "test": [
        "pytest",
        "pytest_asyncio>=0.24.0",
    ],
    "dev": [
        "doit",
        "ruff",
        "pdoc3",
    ],
}

here = pathlib.Path(__file__).parent.resolve()

long_description = (here / "README.md").read_text(encoding="utf-8")

# Read version
version = {}
with open(here / "src/lmscope/_version.py", "r") as f:
    exec(f.read(), version)

if __name__ == "__main__":
    setuptools.setup(
        name="lmscope",
        version=version["__version__"],
        description="Driver, record/replay and CLI tools for SICK LMS1xx laser scanners.",
        long_description=long_description,
        long_description_content_type="text/markdown",
        keywords=[
            "SICK",
            "LMS1xx",
            "LMS111",
            "LiDAR",
            "laser scanner",
        ],
        classifiers=[
            "License :: OSI Approved :: MIT License",
            "Development Status :: 3 - Alpha",
        ],
        license="MIT",
        package_dir={"": "src"},
        packages=setuptools.find_packages(
            where="src",
            exclude=["*.test", "*.test.*", "test.*", "test", "test_*"],
        ),
        entry_points={
            "console_scripts": [
                "lmscope=lmscope.cli:cli",
            ],
        },
        install_requires=required,
        extras_require=extras,
        python_requires=">= 3.11",
        setup_requires=["wheel"],  # force install of wheel first
    )
