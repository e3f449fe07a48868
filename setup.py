# setup.py
from setuptools import setup, find_packages

setup(
    name="identity_ledger",
    version="0.1.0",
    packages=find_packages(include=["identity_ledger", "identity_ledger.*"]),
    python_requires=">=3.10",
    install_requires=[
        "msgpack",            # canonical state encoding
        "pycryptodome",       # keccak-256
        "prometheus_client",  # metrics
        "psutil",             # monitoring
    ],
    extras_require={
        "test": ["pytest"],
    },
)
