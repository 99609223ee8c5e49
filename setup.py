from setuptools import setup, find_packages

setup(
    name="geffe",
    version="0.1.0",
    packages=find_packages(include=["geffe", "geffe.*"]),
    python_requires=">=3.10",
    extras_require={
        "examples": ["tqdm"],
        "test": ["pytest", "tqdm"],
    },
)
