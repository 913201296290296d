from setuptools import setup, find_packages

setup(
    name="featmatch",
    version="1.0.0",
    description="Feature detection and matching demo harness built on OpenCV",
    author="featmatch contributors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "opencv-python>=4.8.0,<5",
        "numpy>=1.24.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "featmatch-demo=featmatch.demo:main",
        ],
    },
    python_requires=">=3.9",
)
