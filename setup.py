from setuptools import find_packages, setup

setup(
    name="fxcore",
    version="1.0.0",
    packages=find_packages(include=["fxcore", "fxcore.*"]),
    package_dir={"fxcore": "fxcore"},
    install_requires=[line for line in open("requirements-core.txt").read().splitlines() if line],
    extras_require={
        "test": [line for line in open("requirements-dev.txt").read().splitlines() if line],
    },
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "fxcore=fxcore.cli:main",
        ],
    },
)
