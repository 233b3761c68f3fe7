"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/zackees/sketchpilot"
KEYWORDS = "embedded arduino arduino-cli boards.txt compiler toolchain firmware microcontroller upload"
HERE = os.path.dirname(os.path.abspath(__file__))


if __name__ == "__main__":
    setup(
        name="sketchpilot",
        version="0.1.0",
        description="Drive arduino-cli builds and uploads for sketch projects",
        maintainer="Zachary Vorhies",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.8",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=["pyserial>=3.5"],
        extras_require={"test": ["pytest>=7.0"]},
        entry_points={"console_scripts": ["sketchpilot=sketchpilot.cli:main"]},
        include_package_data=True)
