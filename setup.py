from setuptools import setup, find_packages

setup(
    name="instrumeta",
    version="0.1.0",
    packages=find_packages(include=["instrumeta", "instrumeta.*"]),
    install_requires=[
        "numpy",
        "lxml",
        "tqdm",
        # Schema documents
        "PyYAML",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    python_requires=">=3.8",
)
