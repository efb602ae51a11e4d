#!/usr/bin/env python3
"""
Setup configuration for BucketScout
"""

from setuptools import setup, find_packages
import os
from pathlib import Path

this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding='utf-8') if (this_directory / "README.md").exists() else ""


def get_version():
    """Get the version from __init__.py file"""
    version_file = os.path.join(os.path.dirname(__file__), 'bucketscout', '__init__.py')
    try:
        with open(version_file, 'r', encoding='utf-8') as f:
            for line in f:
                if line.strip().startswith('__version__'):
                    return line.split('=')[1].strip().strip('"').strip("'")
    except FileNotFoundError:
        pass
    return "1.0.0"


# Essential required dependencies
REQUIRED = [
    "click>=8.0.0",          # CLI interface
    "aiohttp>=3.8.0",        # Asynchronous probe requests
    "sqlalchemy>=2.0.0",     # Findings store
    "pyyaml>=6.0",           # Configuration files and YAML export
    "lxml>=4.9.0",           # Hardened XML parsing of S3 responses
    "rich>=13.0.0",          # Tables and colored output
]

# Optional dependencies
EXTRAS = {
    'dev': [
        "pytest>=7.0.0",
        "pytest-cov>=4.0.0",
    ]
}

setup(
    name="bucketscout",
    version=get_version(),
    description="Passive discovery of publicly exposed S3-compatible buckets",
    long_description=long_description,
    long_description_content_type="text/markdown",

    license="MIT",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Information Technology",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Security",
        "Topic :: System :: Networking",
    ],
    keywords="s3, bucket, minio, misconfiguration, security, scanner",

    python_requires=">=3.10",

    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,

    install_requires=REQUIRED,
    extras_require=EXTRAS,

    entry_points={
        'console_scripts': [
            'bucketscout=bucketscout.main:main',
        ],
    },

    zip_safe=False,
    platforms=["any"],
)
