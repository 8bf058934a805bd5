#!/usr/bin/env python3
"""
Setup script for kdb-datasource-client
"""

from setuptools import setup, find_packages


def main():
    # Read the long description from README
    with open("README.md", "r", encoding="utf-8") as fh:
        long_description = fh.read()

    # Read requirements
    with open("requirements.txt", "r", encoding="utf-8") as fh:
        requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

    setup(
        name="kdb-datasource-client",
        version="1.0.0",
        description="Client for the kdb+ backend datasource of a Grafana host: settings, queries and variable queries",
        long_description=long_description,
        long_description_content_type="text/markdown",
        packages=find_packages(),
        classifiers=[
            "Development Status :: 4 - Beta",
            "Intended Audience :: Developers",
            "Operating System :: OS Independent",
            "Programming Language :: Python :: 3",
            "Programming Language :: Python :: 3.9",
            "Programming Language :: Python :: 3.10",
            "Programming Language :: Python :: 3.11",
            "Topic :: Software Development :: Libraries :: Python Modules",
            "Topic :: System :: Monitoring",
        ],
        python_requires=">=3.9",
        install_requires=requirements,
        extras_require={
            "dev": [
                "pytest>=7.0.0",
                "pytest-cov>=4.0.0",
                "black>=22.0.0",
                "flake8>=5.0.0",
                "mypy>=1.0.0",
            ],
        },
        entry_points={
            "console_scripts": [
                "kdb-datasource-client=kdb_datasource_client.cli:main",
            ],
        },
    )


if __name__ == "__main__":
    main()
