"""Setup configuration for zdravniki."""

from setuptools import find_packages, setup

setup(
    name="zdravniki",
    version="0.3.0",
    description="Doctor and institution data service — fetch, parse, merge and cache upstream CSV datasets",
    author="sledilnik",
    python_requires=">=3.11",
    packages=find_packages(where="src", include=["zdravniki*"]),
    package_dir={"": "src"},
    install_requires=[
        "httpx>=0.27.0",
        "pydantic>=2.6.0",
        "pydantic-settings>=2.1.0",
    ],
    entry_points={
        "console_scripts": [
            "zdravniki=zdravniki.cli:cli_entry",
        ],
    },
    extras_require={
        "dev": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.0",
            "pytest-mock>=3.12.0",
            "respx>=0.21.0",
            "python-dotenv>=1.0.0",
        ],
    },
)
