# -*- coding: utf-8 -*-
import setuptools
import pathlib
import site
import sys

# odd bug with develop (editable) installs, see: https://github.com/pypa/pip/issues/7953
site.ENABLE_USER_SITE = "--user" in sys.argv[1:]

required = [
    "numpy",
    "simplejson>= 3.19.2",
    "mashumaro",
    "loguru",
    "websockets>=14.0",
    "httpx",
]

test_required = [
    "pytest",
    "pytest_asyncio>=0.24.0",
]

here = pathlib.Path(__file__).parent.resolve()

long_description = (here / "README.md").read_text(encoding="utf-8")

# Read version
version = {}
with open("src/pitaya/_version.py", "r") as f:
    exec(f.read(), version)

if __name__ == "__main__":
    setuptools.setup(
        name="pitaya",
        version=version["__version__"],
        description="Typed, streaming access to Red Pitaya instruments over one websocket.",
        long_description=long_description,
        long_description_content_type="text/markdown",
        keywords=[
            "Red Pitaya",
            "ADC",
            "DAC",
            "instrument control",
            "websocket",
        ],
        classifiers=[
            "License :: OSI Approved :: MIT License",
            "Development Status :: 3 - Alpha",
            "Framework :: AsyncIO",
        ],
        license="MIT",
        package_dir={"": "src"},
        packages=setuptools.find_packages(
            where="src",
            exclude=["*.test", "*.test.*", "test.*", "test", "test_*"],
        ),
        install_requires=required,
        extras_require={"test": test_required},
        python_requires=">= 3.11",
        package_data={"": ["*.md"]},
        setup_requires=["wheel"],  # force install of wheel first
    )
