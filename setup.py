from setuptools import setup

from app.__version__ import __version_string__

setup(
    name="PyChip8",
    version=__version_string__,
    description="CHIP-8 virtual machine with a pygame front end",
    packages=["chip8"],
    package_dir={"chip8": "app/chip8"},
    python_requires=">=3.11",
    install_requires=[
        "numpy",
        "bitarray",
        "returns",
        "rich",
    ],
    extras_require={
        "frontend": ["pygame-ce"],
        "test": ["pytest"],
    },
    include_package_data=True,
    zip_safe=False,
)
