from setuptools import setup, find_packages

setup(
    name="astra-sdk",
    version="0.1.0",
    description="Astra SDK - единый клиент для DevOps, CQL, Document, REST и GraphQL API",
    author="Astra SDK Team",
    package_dir={"": "src"},
    packages=find_packages("src"),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "typer>=0.16.0",
        "rich>=13.7.1",
        "httpx>=0.27.0",
        "PyYAML>=6.0.2",
        "python-dotenv>=1.0.1",
    ],
    extras_require={
        "cql": ["cassandra-driver>=3.29.0"],
        "test": ["pytest>=8.3.2"],
    },
    entry_points={
        "console_scripts": [
            "astra=astra_sdk.apps.cli.app:app",  # команда `astra`
        ],
    },
)
