from setuptools import setup, find_packages

setup(
    name="bitcoinvm",
    version="0.1.0",
    description="A package to arithmetize the execution of Bitcoin scriptPubKeys",
    url="https://github.com/yourusername/bitcoinvm",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "tx-engine",
        "ecdsa",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
)
